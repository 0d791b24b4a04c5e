"""Event templates for ChannelLogger, keyed by ``(domain, action)``.

Templates live in ``event_templates.json`` beside this module as
``{"<domain>": {"<action>": "text with {placeholders}"}}``. The module also
knows how to find the ``log_event`` calls in a source tree, so the catalog
can be checked against what the package actually logs.
"""

from __future__ import annotations

import ast
import json
import string
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

EventKey = tuple[str, str]

TEMPLATES_PATH = Path(__file__).with_name("event_templates.json")
LOAD_ERROR_KEY: EventKey = ("app", "load_error")


class EventCatalog:
    """Loaded templates and their rendering."""

    def __init__(self, templates: Mapping[EventKey, str] | None = None):
        self._templates: dict[EventKey, str] = dict(templates or {})

    @classmethod
    def from_file(cls, path: Path = TEMPLATES_PATH) -> EventCatalog:
        """Load ``path``. Never raises.

        A missing or unreadable file yields a catalog holding only a
        ``("app", "load_error")`` entry describing the failure, so logging
        keeps working with derived messages.
        """
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return cls({LOAD_ERROR_KEY: "Event templates file missing"})
        except (OSError, ValueError) as e:
            return cls({LOAD_ERROR_KEY: f"Failed to load event templates: {e}"[:200]})
        templates: dict[EventKey, str] = {}
        if isinstance(raw, Mapping):
            for domain, actions in raw.items():
                if not isinstance(actions, Mapping):
                    continue
                for action, text in actions.items():
                    if isinstance(text, str):
                        templates[(domain, action)] = text
        return cls(templates)

    def __contains__(self, key: object) -> bool:
        return key in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def keys(self) -> set[EventKey]:
        return set(self._templates)

    def get(self, domain: str, action: str) -> str | None:
        return self._templates.get((domain, action))

    def render(self, domain: str, action: str, fields: Mapping[str, object]) -> str | None:
        """Format the event's template with ``fields``; None for unknown events.

        A template whose placeholders are not all supplied comes back
        unformatted.
        """
        template = self._templates.get((domain, action))
        if template is None:
            return None
        try:
            return template.format(**fields)
        except (KeyError, IndexError, ValueError):
            return template

    def placeholders(self, domain: str, action: str) -> set[str]:
        template = self._templates.get((domain, action))
        if template is None:
            return set()
        return {name for _, name, _, _ in string.Formatter().parse(template) if name}

    def missing(self, keys: Iterable[EventKey]) -> list[EventKey]:
        """Return the keys in ``keys`` that have no template, sorted."""
        return sorted({key for key in keys if key not in self._templates})


@dataclass(frozen=True)
class LoggedEvent:
    """One literal ``log_event(domain, action, ...)`` call found in source."""

    path: Path
    line: int
    key: EventKey
    fields: frozenset[str]
    # Call also passes **mapping, so fields may be incomplete
    open_fields: bool = False


def _literal(node: ast.expr) -> str | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


def iter_logged_events(root: Path) -> Iterator[LoggedEvent]:
    """Yield the ``log_event`` calls under ``root`` with literal domain and action.

    Calls that compute either name at runtime are skipped.
    """
    for source in sorted(root.rglob("*.py")):
        tree = ast.parse(source.read_text(encoding="utf-8"), filename=str(source))
        for node in ast.walk(tree):
            if not isinstance(node, ast.Call) or len(node.args) < 2:
                continue
            func = node.func
            name = func.attr if isinstance(func, ast.Attribute) else getattr(func, "id", None)
            if name != "log_event":
                continue
            domain, action = _literal(node.args[0]), _literal(node.args[1])
            if domain is None or action is None:
                continue
            yield LoggedEvent(
                path=source,
                line=node.lineno,
                key=(domain, action),
                fields=frozenset(kw.arg for kw in node.keywords if kw.arg),
                open_fields=any(kw.arg is None for kw in node.keywords),
            )


catalog = EventCatalog.from_file()


def reload_event_templates(path: Path = TEMPLATES_PATH) -> EventCatalog:
    """Replace the shared catalog with a fresh load of ``path``."""
    global catalog  # noqa: PLW0603
    catalog = EventCatalog.from_file(path)
    return catalog


__all__ = [
    "EventCatalog",
    "EventKey",
    "LoggedEvent",
    "catalog",
    "iter_logged_events",
    "reload_event_templates",
]
