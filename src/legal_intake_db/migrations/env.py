"""Alembic environment for the intake session tables.

The session store may share a database with other services, so migrations
only consider tables declared on ``Base.metadata`` and keep their own
version table.  The URL comes from :func:`load_db_settings`, in its
synchronous form.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from legal_intake_db.config import load_db_settings
from legal_intake_db.models import Base

VERSION_TABLE = "intake_alembic_version"

config = context.config
config.set_main_option("sqlalchemy.url", load_db_settings().sync_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def include_object(obj, name, type_, reflected, compare_to) -> bool:
    """Ignore reflected tables that this package does not own."""
    if type_ == "table" and reflected and compare_to is None:
        return False
    return True


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        version_table=VERSION_TABLE,
        include_object=include_object,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL without connecting."""
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
