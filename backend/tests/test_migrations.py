"""
Tests for the alembic migration history.

The migrated schema must match the models, since tests and development
setups build tables from the models directly.
"""
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from jobboard.config import Settings
from jobboard.database import Base

BACKEND_DIR = Path(__file__).resolve().parents[1]


@pytest.fixture
def alembic_config(tmp_path: Path) -> Config:
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{tmp_path / 'migrated.db'}")
    return config


@pytest.fixture
def inspect_db(tmp_path: Path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrated.db'}")
    yield lambda: inspect(engine)
    engine.dispose()


def test_upgrade_matches_models(alembic_config, inspect_db):
    command.upgrade(alembic_config, "head")
    inspector = inspect_db()

    assert set(inspector.get_table_names()) == {"alembic_version", "users", "jobs", "applications"}

    for table in Base.metadata.sorted_tables:
        columns = {column["name"] for column in inspector.get_columns(table.name)}
        assert columns == set(table.columns.keys()), table.name

        indexes = {index["name"]: bool(index["unique"]) for index in inspector.get_indexes(table.name)}
        expected = {index.name: bool(index.unique) for index in table.indexes}
        assert indexes == expected, table.name

    unique = [constraint["name"] for constraint in inspector.get_unique_constraints("applications")]
    assert unique == ["uq_job_student"]

    foreign_keys = {fk["referred_table"]: fk for fk in inspector.get_foreign_keys("applications") if fk["constrained_columns"] == ["job_id"]}
    assert foreign_keys["jobs"]["options"].get("ondelete") == "SET NULL"


def test_downgrade_to_base(alembic_config, inspect_db):
    command.upgrade(alembic_config, "head")
    command.downgrade(alembic_config, "base")

    assert inspect_db().get_table_names() == ["alembic_version"]


def test_tables_are_not_created_on_startup_by_default():
    assert Settings.model_fields["create_tables_on_startup"].default is False
