"""Structured event logger used across the package."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

from . import event_catalog


def _supports_color(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except Exception:  # pragma: no cover
        return False


class SimpleFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\x1b[36m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[35m",
    }
    RESET = "\x1b[0m"

    def __init__(self) -> None:
        super().__init__()
        self.enable_color = _supports_color(sys.stdout)

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 (simple override)
        msg = record.getMessage()
        # Longest built-in level name: 'CRITICAL' (8 chars).
        raw_level = record.levelname.ljust(8)
        if self.enable_color:
            color = self.LEVEL_COLORS.get(record.levelno, "")
            return f"{color}{raw_level}{self.RESET} {msg}"
        return f"{raw_level} {msg}"


class ChannelLogger:
    """Event logger rendering ``[account#target] message`` lines.

    ``account`` and ``target`` are reserved keyword fields; every other
    keyword is only shown when DEBUG is enabled.
    """

    PREFIX_WIDTH = 28
    EVENT_WIDTH = 32

    def __init__(self, name: str = "irc_channel", log_file: str | None = None) -> None:
        self.logger = logging.getLogger(name)
        self.log_file = log_file
        self.logger.handlers.clear()
        self.logger.setLevel(logging.DEBUG if self._is_debug_enabled() else logging.INFO)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(SimpleFormatter())
        self.logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                )
            )
            self.logger.addHandler(file_handler)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        event_name = f"{domain}_{action}".lower()
        human_text = human
        if human_text is None:
            human_text = event_catalog.catalog.render(domain, action, kwargs)
            if human_text is None:
                human_text = f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
                kwargs.setdefault("derived", True)
        self._log(level, event_name, human_text, exc_info=exc_info, **kwargs)

    def _log(
        self,
        level: int,
        event_name: str,
        human_text: str,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        account = kwargs.pop("account", None)
        target = kwargs.pop("target", None)
        prefix = self._build_prefix(
            account if isinstance(account, str) else None,
            target if isinstance(target, str) else None,
        )
        if self._is_debug_enabled():
            msg = self._build_debug_message(event_name, prefix, human_text, kwargs)
        else:
            msg = f"{prefix} {human_text}"
        self.logger.log(level, msg, exc_info=exc_info)

    @staticmethod
    def _is_debug_enabled() -> bool:
        return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")

    @classmethod
    def _build_prefix(cls, account: str | None, target: str | None) -> str:
        core = account or "system"
        if target:
            # Channels already carry their '#'
            core = f"{core}{target}" if target.startswith("#") else f"{core}>{target}"
        return f"[{core.ljust(cls.PREFIX_WIDTH)[: cls.PREFIX_WIDTH]}]"

    @classmethod
    def _build_debug_message(
        cls,
        event_name: str,
        prefix: str,
        human_text: str,
        kwargs: dict[str, object],
    ) -> str:
        if len(event_name) <= cls.EVENT_WIDTH:
            ev = event_name.ljust(cls.EVENT_WIDTH)
        else:
            ev = event_name[: cls.EVENT_WIDTH - 1] + "…"
        base = f"{ev} {prefix} {human_text}"
        context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        if context:
            base = f"{base} ({context})"
        return base


logger = ChannelLogger()
