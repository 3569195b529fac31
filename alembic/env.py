from sqlalchemy import engine_from_config, pool

from alembic import context
from modmarket.core.config import get_app_settings
from modmarket.db.models import SqlAlchemyBase

config = context.config

target_metadata = SqlAlchemyBase.metadata

settings = get_app_settings()

if not config.get_main_option("sqlalchemy.url"):
    if settings.DB_URL is None:
        raise ValueError("No database url configured")
    config.set_main_option("sqlalchemy.url", settings.DB_URL.replace("%", "%%"))


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode, emitting SQL to the script output
    instead of executing it.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
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
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
