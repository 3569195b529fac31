"""
Application-wide logger access.

`get_logger` configures logging from the application settings on first use
and afterwards hands out the root logger or a named child.
"""
import logging

from modmarket.core.config import determine_data_dir, get_app_settings
from modmarket.core.logger.config import configure_logging

__root_logger: None | logging.Logger = None


def get_logger(module=None) -> logging.Logger:
    """
    Returns the configured root logger, or a child logger named `module`.

    Args:
        module (str | None, optional): Name of the child logger. Defaults to None.
    """
    global __root_logger

    if __root_logger is None:
        __root_logger = configure_logging(get_app_settings(), determine_data_dir())

    if module is None:
        return __root_logger

    return __root_logger.getChild(module)
