"""
Service-level exceptions.

These are raised (not returned) because they signal either a fatal
misconfiguration or a failure the calling use case translates into a
Result error code.
"""

from enum import Enum


class ConfigurationError(Exception):
    """Fatal misconfiguration detected while wiring services at startup"""


class MalformedHashError(Exception):
    """A stored password hash is not a structurally valid bcrypt hash"""


class TokenErrorKind(str, Enum):
    """Closed set of reasons a presented token can be rejected"""

    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    WRONG_TYPE = "wrong_type"


class TokenError(Exception):
    def __init__(self, kind: TokenErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)
