"""Tests for the schema migration."""

from __future__ import annotations

import importlib.util
from pathlib import Path
from types import ModuleType
from unittest.mock import MagicMock

import pytest

from filing_desk.models import Business, Contact, Correspondence

VERSIONS_DIR = Path(__file__).resolve().parents[2] / "alembic" / "versions"


@pytest.fixture
def migration() -> ModuleType:
    """Load the initial migration with a mocked alembic op."""
    path = VERSIONS_DIR / "20240501_create_filing_tables.py"
    spec = importlib.util.spec_from_file_location("create_filing_tables", path)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    module.op = MagicMock()  # type: ignore[attr-defined]
    return module


def _created_columns(op: MagicMock) -> dict[str, set[str]]:
    tables: dict[str, set[str]] = {}
    for call in op.create_table.call_args_list:
        name, *items = call.args
        tables[name] = {item.name for item in items if hasattr(item, "type")}
    return tables


class TestCreateFilingTables:
    """Tests for the initial migration."""

    def test_first_revision(self, migration: ModuleType) -> None:
        """Test the migration starts the history."""
        assert migration.down_revision is None

    def test_columns_match_models(self, migration: ModuleType) -> None:
        """Test the migration creates the columns the models map."""
        migration.upgrade()

        tables = _created_columns(migration.op)
        for model in (Business, Contact, Correspondence):
            expected = {column.name for column in model.__table__.columns}
            assert tables[model.__tablename__] == expected

    def test_unique_fingerprint_per_business(self, migration: ModuleType) -> None:
        """Test the duplicate constraint is created."""
        migration.upgrade()

        call = next(
            c for c in migration.op.create_table.call_args_list if c.args[0] == "correspondence"
        )
        constraints = [item for item in call.args if item.__class__.__name__ == "UniqueConstraint"]
        assert constraints[0].name == "uq_correspondence_business_hash"

    def test_downgrade_drops_tables(self, migration: ModuleType) -> None:
        """Test downgrade drops tables in dependency order."""
        migration.downgrade()

        dropped = [c.args[0] for c in migration.op.drop_table.call_args_list]
        assert dropped == ["correspondence", "contacts", "businesses"]
