"""Tests for the material catalog and project registration services."""

import pytest

from sitestock.services import inventory_service, material_service, project_service
from sitestock.services.dto import InwardLineRequest, PaginationParams
from sitestock.services.exceptions import (
    DuplicateCodeError,
    MaterialInUse,
    MaterialNotFound,
    ProjectNotFound,
    ValidationError,
)


class TestProjectService:
    def test_create_and_list(self, db_session):
        project_service.create_project("  P9 ", "Canal Bridge", session=db_session)
        project_service.create_project("P1", "Metro Depot", session=db_session)

        codes = [p["code"] for p in project_service.list_projects(session=db_session)]

        assert codes == ["P1", "P9"]

    def test_required_fields(self, db_session):
        with pytest.raises(ValidationError) as exc:
            project_service.create_project(" ", None, session=db_session)
        assert "Project code is required" in str(exc.value)
        assert "Project name is required" in str(exc.value)

    def test_duplicate_code(self, db_session, project):
        with pytest.raises(DuplicateCodeError):
            project_service.create_project("P1", "Another", session=db_session)

    def test_require_project(self, db_session):
        with pytest.raises(ProjectNotFound):
            project_service.require_project(31, db_session)
        with pytest.raises(ValidationError):
            project_service.require_project(None, db_session)


class TestMaterialCatalog:
    """Tests for create/update/list/delete of materials."""

    def test_new_material_has_empty_stock(self, db_session, cement):
        assert cement.code == "CEM-50"
        assert cement.received_qty == 0
        assert cement.balance_qty == 0

    def test_required_and_length_checks(self, db_session):
        with pytest.raises(ValidationError) as exc:
            material_service.create_material("", "", session=db_session)
        assert "Material code is required" in str(exc.value)

        with pytest.raises(ValidationError) as exc:
            material_service.create_material("X-1", "Too long unit", unit="u" * 31, session=db_session)
        assert "Unit must be 30 characters or less" in str(exc.value)

    def test_duplicate_code(self, db_session, cement):
        with pytest.raises(DuplicateCodeError) as exc:
            material_service.create_material("CEM-50", "Duplicate", session=db_session)
        assert "Material code 'CEM-50' already exists" in str(exc.value)

    def test_search_and_paginate(self, db_session, cement, rebar):
        everything = material_service.list_materials(session=db_session)
        steel = material_service.list_materials(search="STEEL", session=db_session)
        page = material_service.list_materials(
            pagination=PaginationParams(page=2, per_page=1), session=db_session
        )

        assert everything.total == 2
        assert [m["code"] for m in steel.items] == ["TMT-12"]
        assert [m["code"] for m in page.items] == ["TMT-12"]
        assert not page.has_next

    def test_update_descriptive_fields(self, db_session, cement):
        updated = material_service.update_material(
            cement.id, name="OPC 53 Grade 50kg", category="Cement", session=db_session
        )

        assert updated.name == "OPC 53 Grade 50kg"
        assert updated.category == "Cement"

    def test_update_rejects_aggregates(self, db_session, cement):
        with pytest.raises(ValidationError) as exc:
            material_service.update_material(cement.id, balance_qty=500, session=db_session)
        assert "balance_qty" in str(exc.value)

    def test_update_code_clash(self, db_session, cement, rebar):
        with pytest.raises(DuplicateCodeError):
            material_service.update_material(rebar.id, code="CEM-50", session=db_session)

    def test_delete_unused_material(self, db_session, cement):
        material_id = cement.id

        assert material_service.delete_material(material_id, session=db_session)
        with pytest.raises(MaterialNotFound):
            material_service.require_material(material_id, db_session)

    def test_delete_material_in_use(self, db_session, actor, project, cement_allocated):
        inventory_service.register_inward(
            actor, project.id, [InwardLineRequest(cement_allocated.id, 5, 5)], session=db_session
        )

        with pytest.raises(MaterialInUse) as exc:
            material_service.delete_material(cement_allocated.id, session=db_session)
        assert "1 allocations" in str(exc.value)
        assert "1 inward lines" in str(exc.value)
