"""
Service layer for modmarket.

`BaseService` hands every service the application logger and settings so
concrete services do not look them up themselves.
"""

from logging import Logger

from modmarket.core.config import get_app_settings
from modmarket.core.root_logger import get_logger
from modmarket.core.settings import AppSettings


class BaseService:
    def __init__(self) -> None:
        self._logger: Logger = get_logger()
        self._settings: AppSettings = get_app_settings()
