"""Tests for service layer structured logging.

These tests verify that ledger operations emit structured log entries
with appropriate context information.
"""

import logging

import pytest

from sitestock.services import inventory_service
from sitestock.services.dto import InwardLineRequest, OutwardLineRequest
from sitestock.services.exceptions import InsufficientBalanceError
from sitestock.services.logging_utils import get_service_logger, log_operation


class TestLoggingUtilities:
    """Tests for logging utility functions."""

    def test_get_service_logger_extracts_module_name(self):
        """get_service_logger keeps only the last part of a dotted name."""
        logger = get_service_logger("sitestock.services.inventory_service")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "sitestock.services.inventory_service"

    def test_log_operation_logs_at_info_level(self, caplog):
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(logger, operation="test_op", outcome="success", project_id=3)

        assert "test_op: success" in caplog.text

    def test_log_operation_includes_extra_context(self, caplog):
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(logger, operation="context_test", outcome="success", material_code="CEM-50")

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.operation == "context_test"
        assert record.outcome == "success"
        assert record.material_code == "CEM-50"


class TestInventoryLogging:
    """Ledger operations log successes and rejections."""

    def test_receipt_logged(self, caplog, db_session, actor, project, cement_allocated):
        with caplog.at_level(logging.INFO, logger="sitestock.services"):
            inventory_service.register_inward(
                actor, project.id, [InwardLineRequest(cement_allocated.id, 5, 5)], session=db_session
            )

        records = [r for r in caplog.records if getattr(r, "operation", None) == "register_inward"]
        assert len(records) == 1
        assert records[0].outcome == "success"
        assert records[0].code == "I0001"

    def test_rejection_logged_as_warning(self, caplog, db_session, actor, project, cement_allocated):
        with caplog.at_level(logging.INFO, logger="sitestock.services"):
            with pytest.raises(InsufficientBalanceError):
                inventory_service.register_outward(
                    actor, project.id, [OutwardLineRequest(cement_allocated.id, 1)], session=db_session
                )

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].operation == "register_outward"
        assert warnings[0].outcome == "InsufficientBalanceError"
        assert warnings[0].material_code == "CEM-50"
