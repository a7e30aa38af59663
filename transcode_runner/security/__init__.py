"""Security utilities for transcode_runner."""

from .token_redaction import clear_registered_secrets
from .token_redaction import redact_exception
from .token_redaction import redact_tokens
from .token_redaction import register_secret
from .token_redaction import unregister_secret

__all__ = [
    "clear_registered_secrets",
    "redact_exception",
    "redact_tokens",
    "register_secret",
    "unregister_secret",
]
