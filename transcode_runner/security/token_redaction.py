"""Credential redaction utilities for secure logging.

This module provides functions to redact storage credentials from strings
before logging them or returning them inside error messages. Besides the
fixed patterns below, callers may register the literal secret values of a
job so that they are scrubbed wherever they show up.
"""

from __future__ import annotations

import re
import threading
from collections import Counter

# Patterns for various credential types
_TOKEN_PATTERNS = [
    # AWS long-term access key ids
    re.compile(r"\bAKIA[A-Z0-9]{16}\b"),
    # AWS temporary (STS) access key ids
    re.compile(r"\bASIA[A-Z0-9]{16}\b"),
    # Secret assignments echoed back by shells or tools
    re.compile(r"(?i)(aws_secret_access_key\s*[=:]\s*)\S+"),
]

_REDACTED = "[REDACTED]"

# Values shorter than this are too likely to collide with ordinary text.
_MIN_SECRET_LENGTH = 6

_secrets_lock = threading.Lock()
_registered_secrets: Counter[str] = Counter()


def register_secret(value: str | None) -> None:
    """Remember a literal secret value so redact_tokens() scrubs it."""
    text = str(value or "").strip()
    if len(text) < _MIN_SECRET_LENGTH:
        return
    with _secrets_lock:
        _registered_secrets[text] += 1


def unregister_secret(value: str | None) -> None:
    """Drop one registration of a secret; it stays scrubbed while others hold it."""
    text = str(value or "").strip()
    with _secrets_lock:
        if _registered_secrets[text] <= 1:
            _registered_secrets.pop(text, None)
        else:
            _registered_secrets[text] -= 1


def clear_registered_secrets() -> None:
    with _secrets_lock:
        _registered_secrets.clear()


def redact_tokens(text: str) -> str:
    """Redact credentials from a string.

    Args:
        text: The input string that may contain credentials.

    Returns:
        The string with all recognized credentials replaced with [REDACTED].
    """
    if not text:
        return text

    result = text
    with _secrets_lock:
        secrets = sorted(_registered_secrets, key=len, reverse=True)
    for secret in secrets:
        result = result.replace(secret, _REDACTED)
    for pattern in _TOKEN_PATTERNS:
        if pattern.groups:
            result = pattern.sub(lambda m: m.group(1) + _REDACTED, result)
        else:
            result = pattern.sub(_REDACTED, result)
    return result


def redact_exception(exc: BaseException) -> str:
    """Get a redacted string representation of an exception."""
    return redact_tokens(str(exc))
