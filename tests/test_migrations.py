import importlib.util
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

from stableshare.core.database import Base

MIGRATIONS = Path(__file__).resolve().parent.parent / "scripts" / "migrations"


def _load(filename):
    location = importlib.util.spec_from_file_location(f"migration_{filename[:3]}", MIGRATIONS / filename)
    module = importlib.util.module_from_spec(location)
    location.loader.exec_module(module)
    return module


@pytest.fixture
def migrations():
    return [_load("000_create_record_store.py"), _load("001_create_share_tables.py")]


def test_revisions_form_a_chain(migrations):
    record_store, share_tables = migrations

    assert record_store.down_revision is None
    assert share_tables.down_revision == record_store.revision


def test_upgrade_on_empty_database_matches_models(migrations, tmp_path):
    engine = sa.create_engine(f"sqlite:///{tmp_path / 'migrated.db'}")
    try:
        with engine.begin() as conn:
            with Operations.context(MigrationContext.configure(conn)):
                for migration in migrations:
                    migration.upgrade()

            inspector = sa.inspect(conn)
            assert set(inspector.get_table_names()) == set(Base.metadata.tables)
            for name, table in Base.metadata.tables.items():
                migrated = {column["name"] for column in inspector.get_columns(name)}
                assert migrated == set(table.columns.keys()), name
    finally:
        engine.dispose()
