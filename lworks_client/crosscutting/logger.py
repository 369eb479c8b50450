"""
===============================================================================
MODULE: Structured (JSON) logger
===============================================================================

Goal
----
Log library activity as one JSON object per line, with access tokens and
Authorization headers never reaching the output.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Component:
  JSONFormatter + setup_logger()

Responsibilities:
  - Render records as JSON, copying ``extra=`` fields into the payload
  - Redact credentials, cap decoded payload sizes
  - Attach exception details when present
  - Stay quiet by default: NullHandler unless LWORKS_LOG_STDERR is set

Collaborators:
  - crosscutting/config.py (level and format)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

if TYPE_CHECKING:
    from .config import Settings

# Attributes every LogRecord carries; anything else was passed via extra=.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

REDACTED = "***REDACTED***"


class _Redactor:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Class:
      _Redactor

    Responsibilities:
      - Replace credential values by key name (case-insensitive)
      - Cut long strings: decoded topic messages can be arbitrarily large
      - Bound nesting depth of dict/list values

    Collaborators:
      - JSONFormatter
    ----------------------------------------------------------------------------
    """

    SENSITIVE_KEYS = frozenset(
        {
            "token",
            "access_token",
            "accesstoken",
            "testnet_token",
            "mainnet_token",
            "authorization",
            "api_key",
            "x-api-key",
            "secret",
            "password",
        }
    )

    def __init__(self, max_str: int = 4_000, max_depth: int = 4):
        self._max_str = max_str
        self._max_depth = max_depth

    def sanitize(self, value: Any, *, depth: int = 0, key: str | None = None) -> Any:
        if key is not None and key.lower() in self.SENSITIVE_KEYS:
            return REDACTED
        if depth > self._max_depth:
            return "***TRUNCATED***"

        if isinstance(value, str):
            if len(value) > self._max_str:
                return value[: self._max_str] + "…(truncated)"
            return value
        if isinstance(value, (bytes, bytearray)):
            return f"<bytes {len(value)}B>"
        if isinstance(value, dict):
            return {
                str(k): self.sanitize(v, depth=depth + 1, key=str(k))
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.sanitize(v, depth=depth + 1, key=key) for v in value]
        if value is None or isinstance(value, (bool, int, float)):
            return value
        return str(value)


class JSONFormatter(logging.Formatter):
    """One JSON line per record; ``extra`` fields go through _Redactor."""

    def __init__(self) -> None:
        super().__init__()
        self._redactor = _Redactor()

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "pid": os.getpid(),
        }
        payload.update(
            (k, self._redactor.sanitize(v, key=k))
            for k, v in vars(record).items()
            if k not in _RESERVED_ATTRS
        )

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stacktrace": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(
    name: str = "lworks-client", settings: Settings | None = None
) -> logging.Logger:
    """
    Configure the library logger.

    - Invalid LWORKS_* variables never break ``import lworks_client``: the
      defaults (WARNING, JSON) apply and the ValidationError surfaces on the
      first get_settings() call a client makes.
    - Only a NullHandler is attached by default, so records reach the host
      application's handlers exactly once. ``LWORKS_LOG_STDERR=true``
      installs a stderr handler instead and stops propagation.
    - Existing handlers are kept (no duplicates on reimport).
    """
    from .config import get_settings

    level_name, use_json, to_stderr = "WARNING", True, False
    try:
        s = settings or get_settings()
    except ValidationError:
        s = None
    if s is not None:
        level_name = (s.log_level or "WARNING").upper()
        use_json = s.log_json
        to_stderr = s.log_stderr

    log = logging.getLogger(name)
    level = logging.getLevelName(level_name)
    log.setLevel(level if isinstance(level, int) else logging.WARNING)

    if not log.handlers:
        if to_stderr:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                JSONFormatter()
                if use_json
                else logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
            )
            log.addHandler(handler)
            log.propagate = False
        else:
            log.addHandler(logging.NullHandler())

    return log


logger = setup_logger()
