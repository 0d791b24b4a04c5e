"""Tests for event catalog loading and coverage of logged events."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from irc_channel.logs import event_catalog
from irc_channel.logs.event_catalog import (
    EventCatalog,
    iter_logged_events,
    reload_event_templates,
)

_PACKAGE = Path(__file__).parents[1] / "irc_channel"


@pytest.fixture(scope="module")
def logged_events():
    return list(iter_logged_events(_PACKAGE))


def test_event_templates_loads() -> None:
    assert len(event_catalog.catalog) > 0
    assert ("monitor", "registered") in event_catalog.catalog


def test_reload_replaces_shared_catalog() -> None:
    before = event_catalog.catalog.keys()
    fresh = reload_event_templates()
    assert fresh is event_catalog.catalog
    assert fresh.keys() == before


def test_missing_file_records_load_error(tmp_path) -> None:
    catalog = EventCatalog.from_file(tmp_path / "absent.json")
    assert catalog.keys() == {("app", "load_error")}
    assert catalog.get("app", "load_error") == "Event templates file missing"


def test_malformed_file_records_load_error(tmp_path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")
    catalog = EventCatalog.from_file(bad)
    assert catalog.keys() == {("app", "load_error")}
    assert catalog.get("app", "load_error").startswith("Failed to load event templates")


def test_non_string_entries_are_skipped(tmp_path) -> None:
    path = tmp_path / "templates.json"
    path.write_text(
        json.dumps({"probe": {"ok": "fine", "count": 3}, "broken": ["x"]}),
        encoding="utf-8",
    )
    assert EventCatalog.from_file(path).keys() == {("probe", "ok")}


def test_render_and_placeholders() -> None:
    catalog = EventCatalog({("probe", "ok"): "{host}:{port} as {nick}"})
    assert catalog.render("probe", "ok", {"host": "h", "port": 1, "nick": "n"}) == "h:1 as n"
    assert catalog.render("probe", "ok", {"host": "h"}) == "{host}:{port} as {nick}"
    assert catalog.render("probe", "nope", {}) is None
    assert catalog.placeholders("probe", "ok") == {"host", "port", "nick"}
    assert catalog.missing([("probe", "nope"), ("probe", "ok"), ("probe", "nope")]) == [
        ("probe", "nope")
    ]


def test_scanner_finds_literal_calls(tmp_path) -> None:
    (tmp_path / "mod.py").write_text(
        "logger.log_event('probe', 'ok', host=h, port=p)\n"
        "logger.log_event('monitor', kind.value, nick=n)\n"
        "log_event('app', 'start', **extra)\n",
        encoding="utf-8",
    )
    found = sorted(iter_logged_events(tmp_path), key=lambda e: e.line)
    assert [(e.key, e.line) for e in found] == [(("probe", "ok"), 1), (("app", "start"), 3)]
    assert found[0].fields == {"host", "port"}
    assert found[0].open_fields is False
    assert found[1].open_fields is True


def test_every_logged_event_has_a_template(logged_events) -> None:
    assert logged_events, "no log_event calls found"
    assert event_catalog.catalog.missing(e.key for e in logged_events) == []


def test_logged_events_supply_every_placeholder(logged_events) -> None:
    unfilled = []
    for event in logged_events:
        if event.open_fields:
            continue
        absent = event_catalog.catalog.placeholders(*event.key) - event.fields
        if absent:
            unfilled.append(f"{event.path.name}:{event.line} {event.key} {sorted(absent)}")
    assert unfilled == []


def test_membership_events_have_templates() -> None:
    # Emitted with the event kind as action name
    for action in ("join", "part", "quit", "kick"):
        assert ("monitor", action) in event_catalog.catalog
