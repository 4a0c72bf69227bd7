"""
Translation of TokenError kinds into Result error codes.
"""

from src.libs.result import Error
from src.app.services.errors import TokenError, TokenErrorKind

TOKEN_ERRORS = {
    TokenErrorKind.EXPIRED: Error(
        "TOKEN_EXPIRED", "Token has expired. Please log in again."
    ),
    TokenErrorKind.INVALID_SIGNATURE: Error("INVALID_TOKEN", "Token is invalid"),
    TokenErrorKind.MALFORMED: Error("MALFORMED_TOKEN", "Token is malformed"),
    TokenErrorKind.WRONG_TYPE: Error("WRONG_TOKEN_TYPE", "Invalid token type"),
}

TOKEN_ERROR_CODES = frozenset(error.code for error in TOKEN_ERRORS.values())


def token_error(exc: TokenError) -> Error:
    return TOKEN_ERRORS[exc.kind]
