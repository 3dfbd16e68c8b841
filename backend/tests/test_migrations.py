# backend/tests/test_migrations.py
import os

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text

from app.models import Base

BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def test_upgrade_head_builds_every_table(tmp_path):
    cfg = Config(os.path.join(BACKEND_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(BACKEND_DIR, "alembic"))

    eng = create_engine(f"sqlite:///{tmp_path / 'migrated.db'}")
    with eng.begin() as conn:
        cfg.attributes["connection"] = conn
        command.upgrade(cfg, "head")

    tables = set(inspect(eng).get_table_names())
    assert tables - {"alembic_version"} == set(Base.metadata.tables)
    with eng.connect() as conn:
        assert conn.execute(text("SELECT version_num FROM alembic_version")).scalar() == "20261019_initial"
    eng.dispose()
