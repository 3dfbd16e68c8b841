# backend/alembic/env.py
import os
import sys
from logging.config import fileConfig

from alembic import context

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.core.config import engine
from app.models import Base

config = context.config

# Dışarıdan bağlantı verilirse (testler) o kullanılır, log ayarlarına dokunulmaz
injected = config.attributes.get("connection")

if injected is None and config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _configure(bind_url, **kwargs) -> None:
    # SQLite ALTER TABLE desteklemez; değişiklikler batch ile tabloyu yeniden kurar
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=bind_url.get_backend_name() == "sqlite",
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Bağlantı açmadan SQL script üretir (`alembic upgrade head --sql`)."""
    _configure(
        engine.url,
        url=engine.url.render_as_string(hide_password=False),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def run_migrations_online() -> None:
    if injected is not None:
        _configure(injected.engine.url, connection=injected)
        return
    with engine.connect() as connection:
        _configure(engine.url, connection=connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
