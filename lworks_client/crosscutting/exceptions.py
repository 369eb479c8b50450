# lworks_client/crosscutting/exceptions.py
"""
===============================================================================
MODULE: Typed library errors
===============================================================================

Goal
----
Give callers coherent exceptions with:
- a stable error_code
- an error_id for correlation with logs
- a human message (never carrying secrets)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Component:
  LworksError + subclasses

Responsibilities:
  - Standardize configuration, HTTP and fragment errors
  - Generate error_id for tracing

Collaborators:
  - infrastructure/services/mirror_client.py (MirrorResponseError)
  - application/usecases/fragments/* (fragment errors)
  - crosscutting/logger.py
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class LworksError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Class:
      LworksError

    Responsibilities:
      - Base for every error raised by the library
      - Provide error_code + error_id + message

    Collaborators:
      - crosscutting/logger.py
    ----------------------------------------------------------------------------
    """

    error_code: str = "LWORKS_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)


class ConfigurationError(LworksError):
    """Missing or invalid network, environment or access token."""

    error_code: str = "CONFIGURATION_ERROR"


class MirrorResponseError(LworksError):
    """The remote service answered with an HTTP status >= 400."""

    error_code: str = "MIRROR_RESPONSE_ERROR"

    def __init__(self, status: int, url: str, error_message: str | None = None):
        self.status = status
        self.url = url
        self.error_message = error_message
        super().__init__(
            ": ".join(part for part in (f"{status} ({url})", error_message) if part)
        )


class NotFoundError(LworksError):
    """The anchor fragment of a reassembly does not exist."""

    error_code: str = "NOT_FOUND"


class MalformedFragmentError(LworksError):
    """A fragment that must carry complete chunk metadata does not."""

    error_code: str = "MALFORMED_FRAGMENT"


class IncompleteSequenceError(LworksError):
    """The reassembly walk expected a fragment at a position and found none."""

    error_code: str = "INCOMPLETE_SEQUENCE"


class DecodeError(LworksError):
    """Fragment payload is not valid base64 / UTF-8."""

    error_code: str = "DECODE_ERROR"


class ParseError(LworksError):
    """Decoded fragment payload is not valid JSON."""

    error_code: str = "PARSE_ERROR"
