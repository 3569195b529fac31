"""
Logging setup for modmarket.

The run mode is read from `AppSettings`: `TESTING` wins over `PRODUCTION`,
anything else is development. Each mode has a `logconf.<mode>.json`
dictConfig file beside this module; `LOG_CONFIG_OVERRIDE` replaces it.
`${DATA_DIR}` and `${LOG_LEVEL}` placeholders are filled in before the
file is parsed.
"""
import enum
import json
import logging
import pathlib
import string
import typing
from logging import config as logging_config

from modmarket.core.settings import AppSettings

CONFIG_DIR = pathlib.Path(__file__).parent

_active_config: dict[str, typing.Any] | None = None


class LogMode(str, enum.Enum):
    production = "prod"
    development = "dev"
    testing = "test"

    @property
    def config_file(self) -> pathlib.Path:
        return CONFIG_DIR / f"logconf.{self.value}.json"

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "LogMode":
        if settings.TESTING:
            return cls.testing
        if settings.PRODUCTION:
            return cls.production
        return cls.development


def log_level(settings: AppSettings) -> str:
    """
    Returns `LOG_LEVEL` as a standard level name.

    Raises:
        ValueError: If `LOG_LEVEL` is not one of the `logging` level names.
    """
    level = settings.LOG_LEVEL.upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown LOG_LEVEL: {settings.LOG_LEVEL}")
    return level


def _log_config(path: pathlib.Path, substitutions: dict[str, str] | None = None) -> dict[str, typing.Any]:
    contents = path.read_text()
    if substitutions:
        contents = string.Template(contents).safe_substitute(substitutions)
    return json.loads(contents)


def log_config() -> dict[str, typing.Any]:
    """
    Returns the dictConfig applied by `configure_logging`.

    Raises:
        ValueError: If logging has not been configured yet.
    """
    if _active_config is None:
        raise ValueError("Logging not configured, call configure_logging first")
    return _active_config


def configure_logging(settings: AppSettings, data_dir: pathlib.Path) -> logging.Logger:
    """
    Applies the logging config for the mode `settings` describe and returns the root logger.

    In production the log file is written to `data_dir`, which is created if needed.

    Raises:
        ValueError: If `LOG_LEVEL` is unknown.
        FileNotFoundError: If `LOG_CONFIG_OVERRIDE` points to a missing file.
    """
    global _active_config

    mode = LogMode.from_settings(settings)
    path = settings.LOG_CONFIG_OVERRIDE or mode.config_file
    if not path.is_file():
        raise FileNotFoundError(f"Logging config not found: {path}")

    if mode is LogMode.production:
        data_dir.mkdir(parents=True, exist_ok=True)

    _active_config = _log_config(path, {"DATA_DIR": data_dir.as_posix(), "LOG_LEVEL": log_level(settings)})
    logging_config.dictConfig(_active_config)
    return logging.getLogger()
