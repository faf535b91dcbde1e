"""Material Service - catalog maintenance for materials.

This module manages the descriptive side of materials (code, name, unit,
category). Stock aggregates on Material are owned by material_ledger and
are never written here.

Key Features:
- Create/update materials with unique codes
- Search across code, name and category with optional pagination
- Delete guarded against allocations and movement lines
"""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models import Allocation, InwardLine, Material, OutwardLine, TransferLine
from ..utils.constants import (
    MAX_CATEGORY_LENGTH,
    MAX_CODE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_UNIT_LENGTH,
)
from ..utils.validators import (
    sanitize_string,
    validate_required_string,
    validate_string_length,
)
from .database import session_scope
from .dto import PaginatedResult, PaginationParams
from .exceptions import DuplicateCodeError, MaterialInUse, MaterialNotFound, ValidationError

# Fields callers may change through update_material
EDITABLE_FIELDS = ("code", "name", "part_no", "line_type", "unit", "category")


def _validate_identity(
    code: Optional[str],
    name: Optional[str],
    unit: Optional[str] = None,
    category: Optional[str] = None,
) -> None:
    errors = []
    for value, label in ((code, "Material code"), (name, "Material name")):
        is_valid, error = validate_required_string(value, label)
        if not is_valid:
            errors.append(error)
    for value, limit, label in (
        (code, MAX_CODE_LENGTH, "Material code"),
        (name, MAX_NAME_LENGTH, "Material name"),
        (unit, MAX_UNIT_LENGTH, "Unit"),
        (category, MAX_CATEGORY_LENGTH, "Category"),
    ):
        is_valid, error = validate_string_length(value, limit, label)
        if not is_valid:
            errors.append(error)
    if errors:
        raise ValidationError(errors)


def create_material(
    code: str,
    name: str,
    unit: Optional[str] = None,
    category: Optional[str] = None,
    part_no: Optional[str] = None,
    line_type: Optional[str] = None,
    session: Optional[Session] = None,
) -> Material:
    """
    Create a catalog material with zeroed stock aggregates.

    Args:
        code: Unique material code (e.g., "CEM-50")
        name: Display name
        unit: Unit of measure
        category: Category for grouping/search
        part_no: Manufacturer part number
        line_type: BOM line classification
        session: Optional database session

    Returns:
        Created Material

    Raises:
        ValidationError: If code or name is missing or too long
        DuplicateCodeError: If the code is already used
    """
    clean_code = sanitize_string(code)
    clean_name = sanitize_string(name)
    _validate_identity(clean_code, clean_name, sanitize_string(unit), sanitize_string(category))

    def _impl(sess: Session) -> Material:
        if sess.query(Material).filter(Material.code == clean_code).first() is not None:
            raise DuplicateCodeError("material", clean_code)

        material = Material(
            code=clean_code,
            name=clean_name,
            unit=sanitize_string(unit),
            category=sanitize_string(category),
            part_no=sanitize_string(part_no),
            line_type=sanitize_string(line_type),
            ordered_qty=0.0,
            received_qty=0.0,
            utilized_qty=0.0,
            balance_qty=0.0,
        )
        sess.add(material)
        sess.flush()
        return material

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_material(material_id: int, session: Optional[Session] = None) -> Optional[Material]:
    """Get a material by ID, or None if it doesn't exist."""

    def _impl(sess: Session) -> Optional[Material]:
        return sess.get(Material, material_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def require_material(material_id: int, session: Session) -> Material:
    """
    Resolve a material inside an existing transaction.

    Raises:
        ValidationError: If material_id is missing
        MaterialNotFound: If no material has that ID
    """
    if material_id is None:
        raise ValidationError(["Material is required"])
    material = session.get(Material, material_id)
    if material is None:
        raise MaterialNotFound(material_id)
    return material


def list_materials(
    search: Optional[str] = None,
    pagination: Optional[PaginationParams] = None,
    session: Optional[Session] = None,
) -> PaginatedResult[dict]:
    """
    List materials ordered by code.

    Args:
        search: Case-insensitive term matched against code, name and category
        pagination: Optional page parameters; None returns everything
        session: Optional database session

    Returns:
        PaginatedResult of material dictionaries (including stock aggregates)
    """
    term = sanitize_string(search)

    def _impl(sess: Session) -> PaginatedResult[dict]:
        query = sess.query(Material)
        if term:
            pattern = f"%{term.lower()}%"
            query = query.filter(
                or_(
                    Material.code.ilike(pattern),
                    Material.name.ilike(pattern),
                    Material.category.ilike(pattern),
                )
            )
        query = query.order_by(Material.code)
        total = query.count()

        if pagination is None:
            items = query.all()
            return PaginatedResult(
                items=[m.to_dict() for m in items],
                total=total,
                page=1,
                per_page=total or 1,
            )

        items = query.offset(pagination.offset()).limit(pagination.per_page).all()
        return PaginatedResult(
            items=[m.to_dict() for m in items],
            total=total,
            page=pagination.page,
            per_page=pagination.per_page,
        )

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_material(material_id: int, session: Optional[Session] = None, **fields) -> Material:
    """
    Update descriptive material fields.

    Only code, name, part_no, line_type, unit and category can change; stock
    aggregates are rejected.

    Raises:
        MaterialNotFound: If material doesn't exist
        ValidationError: If an unknown/aggregate field is passed or code/name blank
        DuplicateCodeError: If the new code belongs to another material
    """
    unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
    if unknown:
        raise ValidationError([f"Cannot update material field(s): {', '.join(unknown)}"])

    def _impl(sess: Session) -> Material:
        material = require_material(material_id, sess)

        updates = {key: sanitize_string(value) for key, value in fields.items()}
        next_code = updates.get("code", material.code)
        next_name = updates.get("name", material.name)
        _validate_identity(
            next_code,
            next_name,
            updates.get("unit", material.unit),
            updates.get("category", material.category),
        )

        if next_code != material.code:
            clash = (
                sess.query(Material)
                .filter(Material.code == next_code, Material.id != material.id)
                .first()
            )
            if clash is not None:
                raise DuplicateCodeError("material", next_code)

        material.update_from_dict(updates)
        sess.flush()
        return material

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def delete_material(material_id: int, session: Optional[Session] = None) -> bool:
    """
    Delete a material that nothing references.

    Raises:
        MaterialNotFound: If material doesn't exist
        MaterialInUse: If allocations or movement lines reference it
    """

    def _impl(sess: Session) -> bool:
        material = require_material(material_id, sess)

        dependencies = {
            "allocations": sess.query(Allocation).filter_by(material_id=material_id).count(),
            "inward lines": sess.query(InwardLine).filter_by(material_id=material_id).count(),
            "outward lines": sess.query(OutwardLine).filter_by(material_id=material_id).count(),
            "transfer lines": sess.query(TransferLine).filter_by(material_id=material_id).count(),
        }
        if any(count > 0 for count in dependencies.values()):
            raise MaterialInUse(material.code, dependencies)

        sess.delete(material)
        sess.flush()
        return True

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)
