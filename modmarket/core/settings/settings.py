from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .db_providers import AbstractDBProvider, db_provider_factory


class AppSettings(BaseSettings):
    PRODUCTION: bool = False

    BASE_URL: str = "http://localhost:8080"
    """trailing slashes are trimmed (ex. `http://localhost:8080/` becomes ``http://localhost:8080`)"""

    API_DOCS: bool = True

    API_HOST: str = "0.0.0.0"

    API_PORT: int = 8080

    LOG_CONFIG_OVERRIDE: Path | None = None
    """ path to custom logging configuration file"""

    LOG_LEVEL: str = "info"
    """ corresponds to standard Python Log levels """

    # ===============================================
    # Testing Config

    TESTING: bool = False

    model_config = SettingsConfigDict(arbitrary_types_allowed=True, extra="allow")

    @field_validator("BASE_URL")
    @classmethod
    def remove_trailing_slash(cls, v: str) -> str:
        if v and v[-1] == "/":
            return v[:-1]

        return v

    @property
    def DOCS_URL(self) -> str | None:
        return "/docs" if self.API_DOCS else None

    @property
    def REDOC_URL(self) -> str | None:
        return "/redoc" if self.API_DOCS else None

    # ===============================================
    # Database Config

    DB_ENGINE: str = "sqlite"

    DB_PROVIDER: AbstractDBProvider | None = None

    @property
    def DB_URL(self) -> str | None:
        return self.DB_PROVIDER.db_url if self.DB_PROVIDER else None

    @property
    def DB_URL_PUBLIC(self) -> str | None:
        return self.DB_PROVIDER.db_url_public if self.DB_PROVIDER else None

    # ===============================================
    # Search Configuration

    SEARCH_MAX_CONDITIONS: int = 50
    SEARCH_MAX_GROUPS: int = 20
    SEARCH_MAX_NESTING_DEPTH: int = 5
    SEARCH_MAX_TEXT_LENGTH: int = 1000
    SEARCH_MAX_PAGE: int = 1000
    SEARCH_MAX_LIMIT: int = 100

    SEARCH_OPTIMIZE_BY_DEFAULT: bool = True
    """whether `/search/dynamic` rewrites queries with the optimizer when the client does not say"""


def app_settings_constructor(
    data_dir: Path,
    production: bool,
    env_file: Path,
    env_encoding="utf-8",
) -> AppSettings:
    """
    app_settings_constructor is a factory function that returns an AppSettings object.
    It is used to inject the dependencies
    into the AppSettings objects and nested child objects.
    AppSettings should not be instantiated directly, but rather
    through this factory function
    """

    app_settings = AppSettings(
        _env_file=env_file,  # type: ignore
        _env_file_encoding=env_encoding,  # type: ignore
        PRODUCTION=production,
    )

    app_settings.DB_PROVIDER = db_provider_factory(
        app_settings.DB_ENGINE or "sqlite",
        data_dir,
        env_file=env_file,
        env_encoding=env_encoding,
    )
    return app_settings
