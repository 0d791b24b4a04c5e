"""Project logging package.

Contains internal logging utilities (event catalog + ChannelLogger). Avoid
importing stdlib logging through this package name externally.
"""

from .event_catalog import EventCatalog, reload_event_templates  # noqa: F401
from .logger import ChannelLogger, logger  # noqa: F401

__all__ = ["ChannelLogger", "EventCatalog", "logger", "reload_event_templates"]
