"""
Fragment payload decoding.

A topic message carries its content base64 encoded; these helpers turn it
into text, or into JSON when the publisher wrote JSON documents.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Protocol

from ....crosscutting.exceptions import DecodeError, ParseError


class HasMessage(Protocol):
    message: str


def decode_fragment(fragment: HasMessage) -> str:
    """Base64-decode ``fragment.message`` into a UTF-8 string."""
    try:
        raw = base64.b64decode(fragment.message, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(
            "Fragment payload is not valid base64", original_error=exc
        ) from exc
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(
            "Fragment payload is not valid UTF-8", original_error=exc
        ) from exc


def parse_fragment(fragment: HasMessage) -> Any:
    """Decode the payload and parse it as JSON."""
    text = decode_fragment(fragment)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"Fragment payload is not valid JSON: {exc.msg}", original_error=exc
        ) from exc
