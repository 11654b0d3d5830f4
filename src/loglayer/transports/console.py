# src/loglayer/transports/console.py
"""Console transport.

Writes one line per record to stdout or stderr, in JSON or human-readable
form. Primarily used for local development and debugging.
"""

import json
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal, TextIO, TypeGuard

from loglayer.diagnostics import get_logger
from loglayer.errors import TransportConfigurationError
from loglayer.records import LogRecord
from loglayer.transports.base import BaseTransport
from loglayer.transports.layouts import MessageLayout

logger = get_logger(__name__)


def _is_valid_format(v: str) -> TypeGuard[Literal["json", "pretty"]]:
    return v in {"json", "pretty"}


def _is_valid_output(v: str) -> TypeGuard[Literal["stdout", "stderr"]]:
    return v in {"stdout", "stderr"}


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    return str(value)


class ConsoleTransport(BaseTransport):
    """Write records to stdout/stderr.

    Formats:
    - json: one JSON object per line; data keys at the root, then
      ``timestamp``, ``level`` and ``message`` (which win on collision)
    - pretty: ``[TIMESTAMP] LEVEL message ...`` with data rendered as JSON
      in the position chosen by the layout (last by default)

    Example configuration:
        transports:
          - name: console
            options:
              format: json
              output: stderr
    """

    _name = "console"

    _VALID_FORMATS: frozenset[str] = frozenset({"json", "pretty"})
    _VALID_OUTPUTS: frozenset[str] = frozenset({"stdout", "stderr"})

    default_layout = MessageLayout.DATA_LAST

    def __init__(
        self,
        *,
        format: str = "pretty",
        output: str = "stdout",
        stream: TextIO | None = None,
        id: str | None = None,
        enabled: bool = True,
        console_debug: bool = False,
        layout: MessageLayout | str | None = None,
    ) -> None:
        if not isinstance(format, str) or not _is_valid_format(format):
            raise TransportConfigurationError(
                self._name,
                f"Invalid format {format!r}. Must be one of: {', '.join(sorted(self._VALID_FORMATS))}",
            )
        if not isinstance(output, str) or not _is_valid_output(output):
            raise TransportConfigurationError(
                self._name,
                f"Invalid output {output!r}. Must be one of: {', '.join(sorted(self._VALID_OUTPUTS))}",
            )
        if stream is None:
            stream = sys.stdout if output == "stdout" else sys.stderr

        super().__init__(logger=stream, id=id, enabled=enabled, console_debug=console_debug, layout=layout)
        self._format: Literal["json", "pretty"] = format
        self._stream = stream

        logger.debug("Console transport configured", transport=self.id, format=format, output=output)

    def ship_to_logger(self, record: LogRecord) -> list[Any]:
        args, _ = self.arrange(record)
        if self._format == "json":
            line = json.dumps(self._serialize(record), default=_json_default)
        else:
            line = self._format_pretty(record, args)
        print(line, file=self._stream)
        return args

    def _serialize(self, record: LogRecord) -> dict[str, Any]:
        data = dict(record.data) if record.has_data and record.data else {}
        data["timestamp"] = datetime.now(UTC).isoformat()
        data["level"] = record.log_level.value
        data["message"] = " ".join(str(message) for message in record.messages)
        if record.groups:
            data["groups"] = list(record.groups)
        return data

    def _format_pretty(self, record: LogRecord, args: list[Any]) -> str:
        timestamp = datetime.now(UTC).isoformat()
        rendered = [arg if isinstance(arg, str) else json.dumps(arg, default=_json_default) for arg in args]
        line = f"[{timestamp}] {record.log_level.value.upper()}"
        if rendered:
            line = f"{line} {' '.join(rendered)}"
        return line

    def flush(self) -> None:
        try:
            self._stream.flush()
        except Exception as e:
            logger.warning("Failed to flush console stream", transport=self.id, error=str(e))

    def _on_close(self) -> None:
        # The transport does not own stdout/stderr
        self.flush()
