"""
Database provider settings for the modmarket application.

A provider knows how to build the SQLAlchemy connection URL for one database
engine. `SQLiteProvider` keeps the listing database in the data directory, and
`PostgresProvider` reads its connection details from the environment. PostgreSQL
is the engine the full-text search translation is written for; SQLite falls back
to tokenized LIKE matching.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from urllib import parse as urlparse

from pydantic import BaseModel, PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class AbstractDBProvider(ABC):
    """Interface for objects that expose database connection URLs."""

    @property
    @abstractmethod
    def db_url(self) -> str:
        """The full database connection URL, including credentials."""
        ...

    @property
    @abstractmethod
    def db_url_public(self) -> str:
        """The connection URL with credentials masked, safe for logging."""
        ...


class SQLiteProvider(AbstractDBProvider, BaseModel):
    """
    SQLite database provider.

    Attributes:
        data_dir (Path): Directory holding the database file.
        name (str): File name of the database. Defaults to "modmarket.db".
        prefix (str): Optional prefix prepended to the file name.
    """

    data_dir: Path
    name: str = "modmarket.db"
    prefix: str = ""

    @property
    def db_path(self) -> Path:
        return self.data_dir / f"{self.prefix}{self.name}"

    @property
    def db_url(self) -> str:
        return f"sqlite:///{str(self.db_path.absolute())}"

    @property
    def db_url_public(self) -> str:
        return self.db_url


class PostgresProvider(AbstractDBProvider, BaseSettings):
    """
    PostgreSQL database provider.

    Connection details come from `POSTGRES_*` environment variables (or the
    `.env` file). `POSTGRES_URL_OVERRIDE` replaces all of them with one URL.
    """

    POSTGRES_USER: str = "modmarket"
    POSTGRES_PASSWORD: str = "modmarket"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "modmarket"
    POSTGRES_URL_OVERRIDE: str | None = None

    model_config = SettingsConfigDict(arbitrary_types_allowed=True, extra="allow")

    @property
    def db_url(self) -> str:
        """
        Builds the PostgreSQL connection URL.

        Raises:
            ValueError: If `POSTGRES_URL_OVERRIDE` does not use a postgres scheme.

        Returns:
            str: The connection URL with the password URL-quoted.
        """
        if self.POSTGRES_URL_OVERRIDE:
            url = self.POSTGRES_URL_OVERRIDE

            scheme, remainder = url.split("://", 1)
            if scheme not in ("postgres", "postgresql"):
                raise ValueError("POSTGRES_URL_OVERRIDE scheme must be postgresql")

            credentials = remainder[: remainder.rfind("@")]
            if ":" not in credentials:
                return url

            password = credentials.split(":", 1)[1]
            return url.replace(password, urlparse.quote(password))

        return str(
            PostgresDsn.build(
                scheme="postgresql",
                username=self.POSTGRES_USER,
                password=urlparse.quote(self.POSTGRES_PASSWORD),
                host=self.POSTGRES_SERVER,
                port=int(self.POSTGRES_PORT),
                path=self.POSTGRES_DB or "",
            )
        )

    @property
    def db_url_public(self) -> str:
        return self.db_url.replace(self.POSTGRES_USER, "*********", 1).replace(
            urlparse.quote(self.POSTGRES_PASSWORD), "***********", 1
        )


def db_provider_factory(provider_name: str, data_dir: Path, env_file: Path, env_encoding="utf-8") -> AbstractDBProvider:
    """
    Creates the database provider named by `provider_name`.

    Args:
        provider_name (str): "postgres" or "sqlite". Anything else falls back to SQLite.
        data_dir (Path): The application data directory (SQLite file location).
        env_file (Path): The .env file read by the PostgreSQL provider.
        env_encoding (str): Encoding of the .env file.

    Returns:
        AbstractDBProvider: The configured provider.
    """
    if provider_name == "postgres":
        return PostgresProvider(_env_file=env_file, _env_file_encoding=env_encoding)
    return SQLiteProvider(data_dir=data_dir)
