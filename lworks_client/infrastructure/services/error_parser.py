"""
Extract a human error message from a failed HTTP response body.

Supported shapes:
  - mirror node:  {"_status": {"messages": [{"message": "..."}]}}
  - service code: {"error": "..."}
  - API gateway:  {"Message": "..."}
Anything else that is JSON is returned serialized; a body that is not JSON
yields None so callers fall back to the status code alone.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import httpx

from ...crosscutting.logger import logger as _default_logger


def parse_error_message(
    response: httpx.Response, log: logging.Logger | None = None
) -> Optional[str]:
    log = log or _default_logger
    try:
        body = response.json()
    except ValueError:
        log.warning(
            "Failed to parse error body response; falling back to status code only",
            extra={"status": response.status_code},
        )
        return None

    if isinstance(body, dict):
        status = body.get("_status")
        if isinstance(status, dict):
            messages = status.get("messages") or []
            if messages and isinstance(messages[0], dict):
                return messages[0].get("message")
            return "Unknown error response"
        if "error" in body:
            return str(body["error"])
        if "Message" in body:
            return str(body["Message"])

    return json.dumps(body)
