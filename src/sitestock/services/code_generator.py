"""Code Generator - human readable movement codes.

Generated codes are "{PREFIX}{sequence:04d}" where the sequence is the
current number of records of that kind plus one (I0001, O0042, T0003),
bumped past any sequence a hand-entered code already holds.
Caller supplied codes are trimmed and used as-is, after a uniqueness check
inside the caller's transaction.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ..models import InwardRecord, OutwardRecord, TransferRecord
from ..utils.constants import (
    CODE_PREFIXES,
    CODE_SEQUENCE_WIDTH,
    MOVEMENT_INWARD,
    MOVEMENT_OUTWARD,
    MOVEMENT_TRANSFER,
)
from ..utils.validators import sanitize_string
from .database import session_scope
from .exceptions import DuplicateCodeError

RECORD_MODELS = {
    MOVEMENT_INWARD: InwardRecord,
    MOVEMENT_OUTWARD: OutwardRecord,
    MOVEMENT_TRANSFER: TransferRecord,
}


def build_code(kind: str, sequence: int) -> str:
    """
    Format a movement code.

    Examples:
        >>> build_code("inward", 7)
        'I0007'
        >>> build_code("transfer", 0)
        'T0001'
    """
    prefix = CODE_PREFIXES[kind]
    return f"{prefix}{max(1, sequence):0{CODE_SEQUENCE_WIDTH}d}"


def _code_taken(model, code: str, session: Session) -> bool:
    return session.query(model.id).filter(model.code == code).first() is not None


def generate(kind: str, session: Session) -> str:
    """
    Next free code for a movement kind.

    Starts at the current record count plus one and steps past sequence
    numbers already held by hand-entered codes.

    Raises:
        KeyError: If kind is not inward, outward or transfer
    """
    model = RECORD_MODELS[kind]
    sequence = session.query(model).count() + 1
    code = build_code(kind, sequence)
    while _code_taken(model, code, session):
        sequence += 1
        code = build_code(kind, sequence)
    return code


def resolve_code(kind: str, requested: Optional[str], session: Session) -> str:
    """
    Use a trimmed caller code if given, otherwise generate one.

    Raises:
        DuplicateCodeError: If the caller's code is already in use
    """
    code = sanitize_string(requested)
    if code is None:
        return generate(kind, session)
    if _code_taken(RECORD_MODELS[kind], code, session):
        raise DuplicateCodeError(kind, code)
    return code


def generate_codes(session: Optional[Session] = None) -> dict:
    """
    Preview the next inward, outward and transfer codes.

    Side-effect free: nothing is reserved, so two callers can see the same
    preview.

    Returns:
        Dict with inward_code, outward_code and transfer_code
    """

    def _impl(sess: Session) -> dict:
        return {
            "inward_code": generate(MOVEMENT_INWARD, sess),
            "outward_code": generate(MOVEMENT_OUTWARD, sess),
            "transfer_code": generate(MOVEMENT_TRANSFER, sess),
        }

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)
