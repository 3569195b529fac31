"""
Static, import-time constants for the modmarket application.
"""

from modmarket import __version__

APP_VERSION = __version__
"""The current version of the modmarket application."""
