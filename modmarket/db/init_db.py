"""
This module initializes and migrates the modmarket database.

It waits for the database to accept connections, runs the Alembic migrations
up to the latest revision when the schema is behind, and on PostgreSQL enables
the `pg_trgm` extension the search indexes rely on.
"""
import os
from pathlib import Path
from time import sleep

from sqlalchemy import engine, orm, text

from alembic import command, config, script
from alembic.config import Config
from alembic.runtime import migration
from modmarket.core import root_logger
from modmarket.core.config import determine_data_dir, get_app_settings
from modmarket.db.db_setup import session_context

PROJECT_DIR = Path(__file__).parent.parent.parent

logger = root_logger.get_logger()


def connect(session: orm.Session) -> bool:
    """
    Checks if a connection can be established to the database.

    Args:
        session (orm.Session): The SQLAlchemy session to use for the connection test.

    Returns:
        bool: True if the connection is successful, False otherwise.
    """
    try:
        session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Error connecting to database: {e}")
        return False


def db_is_at_head(alembic_cfg: config.Config) -> bool:
    """
    Checks if the database is migrated to the latest Alembic revision (head).

    The database URL is taken from the Alembic config when it sets
    `sqlalchemy.url`, otherwise from the application settings.

    Raises:
        ValueError: If no database URL is configured.
    """
    url = alembic_cfg.get_main_option("sqlalchemy.url") or get_app_settings().DB_URL
    if not url:
        raise ValueError("No database url found")

    connectable = engine.create_engine(url)
    directory = script.ScriptDirectory.from_config(alembic_cfg)
    try:
        with connectable.connect() as connection:
            context = migration.MigrationContext.configure(connection=connection)
            return set(context.get_current_heads()) == set(directory.get_heads())
    finally:
        connectable.dispose()


def alembic_config() -> Config:
    """
    Loads the Alembic config, from `ALEMBIC_CONFIG_FILE` when set.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    alembic_cfg_path = os.getenv("ALEMBIC_CONFIG_FILE", default=str(PROJECT_DIR / "alembic.ini"))
    if not os.path.isfile(alembic_cfg_path):
        raise FileNotFoundError(f"Provided alembic config path doesn't exist: {alembic_cfg_path}")

    return Config(alembic_cfg_path)


def migrate(alembic_cfg: Config) -> None:
    if db_is_at_head(alembic_cfg):
        logger.debug("Migration not needed.")
    else:
        logger.info("Migration needed. Performing migration...")
        command.upgrade(alembic_cfg, "head")


def main() -> None:
    """
    Waits for the database, then migrates the schema.

    Raises:
        ConnectionError: If the database connection cannot be established after multiple retries.
    """
    max_retry = 10
    wait_second = 1

    # the sqlite file lives here
    determine_data_dir().mkdir(parents=True, exist_ok=True)

    with session_context() as session:
        while True:
            if connect(session):
                logger.info("Database connection established.")
                break

            logger.error("Database connection failed - retrying.")
            max_retry -= 1

            sleep(wait_second)

            if max_retry == 0:
                raise ConnectionError("Database connection failed - exiting application.")

        migrate(alembic_config())

        if session.get_bind().name == "postgresql":
            session.execute(text("CREATE EXTENSION IF NOT EXISTS pg_trgm;"))
            session.commit()

        logger.info("Database ready")


if __name__ == "__main__":
    main()
