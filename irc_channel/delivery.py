"""Outbound delivery: byte-budget chunking and paced emission."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from .constants import (
    IRC_CHUNK_DELAY_SECONDS,
    IRC_CONTINUATION_MARKER,
    IRC_MAX_MESSAGE_BYTES,
    IRC_SPLIT_NEWLINE_WINDOW,
    IRC_SPLIT_SPACE_WINDOW,
)
from .errors import NotConnectedError, SendInterruptedError
from .logs.logger import logger

_PUNCTUATION = ".,;!?"
# Widest UTF-8 encoding of one code point
_MIN_CHUNK_BYTES = 4


class MessageKind(Enum):
    SAY = "say"
    NOTICE = "notice"
    ACTION = "action"


class OutboundConnection(Protocol):
    """What the pipeline needs from a connection."""

    @property
    def connected(self) -> bool: ...

    async def say(self, target: str, text: str) -> None: ...

    async def notice(self, target: str, text: str) -> None: ...

    async def action(self, target: str, text: str) -> None: ...


@dataclass
class DeliveryResult:
    target: str
    chunks: list[str] = field(default_factory=list)
    sent: int = 0


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def _fit_index(text: str, budget: int) -> int:
    """Largest character count whose UTF-8 encoding fits in ``budget`` bytes."""
    used = 0
    for index, char in enumerate(text):
        used += _byte_len(char)
        if used > budget:
            return index
    return len(text)


class DeliveryPipeline:
    """Split long text into IRC-sized chunks and emit them in order.

    Args:
        max_bytes: Byte budget for each emitted line (after prefix/marker).
        chunk_delay: Seconds awaited between chunks, never after the last one.
        continuation_marker: Suffix on every chunk except the last.
    """

    def __init__(
        self,
        max_bytes: int = IRC_MAX_MESSAGE_BYTES,
        chunk_delay: float = IRC_CHUNK_DELAY_SECONDS,
        continuation_marker: str = IRC_CONTINUATION_MARKER,
        newline_window: int = IRC_SPLIT_NEWLINE_WINDOW,
        space_window: int = IRC_SPLIT_SPACE_WINDOW,
    ) -> None:
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        self.max_bytes = max_bytes
        self.chunk_delay = chunk_delay
        self.continuation_marker = continuation_marker
        self.newline_window = newline_window
        self.space_window = space_window

    def _chunk_budget(self, split_prefix: str | None) -> tuple[int, int]:
        prefix_bytes = _byte_len(f"{split_prefix} ") if split_prefix else 0
        budget = self.max_bytes - prefix_bytes - _byte_len(self.continuation_marker)
        if budget < _MIN_CHUNK_BYTES:
            raise ValueError(
                f"max_bytes={self.max_bytes} leaves no room for text after "
                f"prefix and continuation marker"
            )
        return budget, prefix_bytes

    def _find_cut(self, remaining: str, budget: int) -> int:
        """Return the character index to cut ``remaining`` at."""
        fit = _fit_index(remaining, budget)
        # Whitespace one past the fit point is trimmed, so it may be used
        window = remaining[: fit + 1]

        def offset(index: int) -> int:
            return _byte_len(remaining[:index])

        newline = window.rfind("\n")
        if newline > 0 and offset(newline) > budget - self.newline_window:
            return newline + 1

        space = window.rfind(" ")
        if space > 0 and offset(space) > budget - self.space_window:
            return space + 1

        # Punctuation stays with the chunk, so it must fit entirely
        punct = max(remaining[:fit].rfind(ch) for ch in _PUNCTUATION)
        if punct >= 0 and offset(punct) > budget - self.space_window:
            return punct + 1

        return fit

    def split(self, text: str, split_prefix: str | None = None) -> list[str]:
        """Split ``text`` into decorated chunks, each within ``max_bytes``.

        Boundary preference: a newline near the end of the window, then a
        space, then punctuation, then a hard cut. Chunks after the first get
        ``"<split_prefix> "``; every chunk but the last gets the marker.
        """
        if _byte_len(text) <= self.max_bytes:
            return [text]

        budget, prefix_bytes = self._chunk_budget(split_prefix)
        last_budget = self.max_bytes - prefix_bytes
        raw_chunks: list[str] = []
        remaining = text
        while _byte_len(remaining) > last_budget:
            cut = self._find_cut(remaining, budget)
            chunk = remaining[:cut].rstrip()
            remaining = remaining[cut:].lstrip()
            if chunk:
                raw_chunks.append(chunk)
        if remaining:
            raw_chunks.append(remaining)

        decorated: list[str] = []
        last = len(raw_chunks) - 1
        for index, chunk in enumerate(raw_chunks):
            if index > 0 and split_prefix:
                chunk = f"{split_prefix} {chunk}"
            if index < last:
                chunk = f"{chunk}{self.continuation_marker}"
            decorated.append(chunk)
        return decorated

    async def _emit(
        self, connection: OutboundConnection, kind: MessageKind, target: str, text: str
    ) -> None:
        if kind is MessageKind.ACTION:
            await connection.action(target, text)
        elif kind is MessageKind.NOTICE:
            await connection.notice(target, text)
        else:
            await connection.say(target, text)

    async def deliver(
        self,
        connection: OutboundConnection,
        target: str,
        text: str,
        kind: MessageKind = MessageKind.SAY,
        *,
        split: bool = True,
        split_prefix: str | None = None,
    ) -> DeliveryResult:
        """Send ``text`` to ``target`` as one or more paced protocol calls.

        Raises:
            NotConnectedError: The connection is down before anything is sent.
            SendInterruptedError: The connection dropped part-way; nothing
                is retried.
        """
        if not connection.connected:
            raise NotConnectedError()

        chunks = self.split(text, split_prefix) if split else [text]
        result = DeliveryResult(target=target, chunks=chunks)
        total = len(chunks)
        if total > 1:
            logger.log_event(
                "delivery",
                "chunked",
                level=logging.DEBUG,
                target=target,
                chunks=total,
                bytes=_byte_len(text),
            )

        for index, chunk in enumerate(chunks):
            if index > 0:
                await asyncio.sleep(self.chunk_delay)
                if not connection.connected:
                    self._log_interrupted(target, result.sent, total)
                    raise SendInterruptedError(target, result.sent, total)
            try:
                await self._emit(connection, kind, target, chunk)
            except (OSError, ConnectionError) as e:
                self._log_interrupted(target, result.sent, total)
                raise SendInterruptedError(target, result.sent, total) from e
            result.sent += 1
        return result

    @staticmethod
    def _log_interrupted(target: str, sent: int, total: int) -> None:
        logger.log_event(
            "delivery",
            "interrupted",
            level=logging.WARNING,
            target=target,
            sent=sent,
            total=total,
        )

    async def react(self, connection: OutboundConnection, target: str, emote: str) -> None:
        """IRC has no reactions; the emote goes out as a /me action."""
        if not connection.connected:
            raise NotConnectedError()
        await connection.action(target, emote)

    async def edit(
        self,
        connection: OutboundConnection,
        target: str,
        original_text: str,
        new_text: str,
        *,
        split_prefix: str | None = None,
    ) -> DeliveryResult:
        """IRC cannot edit; send a correction line instead."""
        return await self.deliver(
            connection,
            target,
            f"{original_text} (Correction: {new_text})",
            split_prefix=split_prefix,
        )


__all__ = ["DeliveryPipeline", "DeliveryResult", "MessageKind", "OutboundConnection"]
