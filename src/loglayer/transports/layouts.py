# src/loglayer/transports/layouts.py
"""Argument layouts for handing a LogRecord to a backend logger.

Backends disagree on where structured data goes. Instead of switching on a
backend type in the hot path, each transport picks one MessageLayout at
construction and calls arrange() per record:

- DATA_FIRST: data as the first positional argument, then the messages
- DATA_LAST: messages, then data as the last positional argument
- KEYWORDS: messages joined into one event string, data as keyword args
- EXTRA: messages joined into one string, data under ``extra=``

Data is only included when the record's has_data flag is set.
"""

from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from loglayer.records import LogRecord


class MessageLayout(StrEnum):
    DATA_FIRST = "data_first"
    DATA_LAST = "data_last"
    KEYWORDS = "keywords"
    EXTRA = "extra"


def join_messages(messages: tuple[Any, ...] | list[Any]) -> str:
    return " ".join(str(message) for message in messages)


def arrange(layout: MessageLayout, record: "LogRecord") -> tuple[list[Any], dict[str, Any]]:
    """Return (args, kwargs) for a backend call under layout."""
    data = record.data if record.has_data and record.data else None

    if layout == MessageLayout.DATA_FIRST:
        return ([data, *record.messages] if data is not None else list(record.messages)), {}
    if layout == MessageLayout.DATA_LAST:
        return ([*record.messages, data] if data is not None else list(record.messages)), {}
    if layout == MessageLayout.KEYWORDS:
        return [join_messages(record.messages)], dict(data or {})
    return [join_messages(record.messages)], ({"extra": dict(data)} if data is not None else {})
