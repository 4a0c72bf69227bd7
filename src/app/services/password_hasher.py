"""
Password Hasher

bcrypt hashing with a fixed cost factor and constant-time verification.
"""

import bcrypt

from .errors import MalformedHashError

DEFAULT_ROUNDS = 12

# bcrypt only consumes the first 72 bytes of input
_MAX_PASSWORD_BYTES = 72
_BCRYPT_HASH_LENGTH = 60
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_PASSWORD_BYTES]


class PasswordHasher:
    """
    One-way salted password hashing.

    Business Rules:
    - Every hash() call draws a fresh salt, so equal inputs give different hashes
    - verify() returns False on mismatch and only raises MalformedHashError
      when the stored hash is not a bcrypt hash
    - Cost factor is fixed for the lifetime of the process (default 12, ~250ms)
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds
        self._dummy_hash = bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(rounds))

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(_encode(password), bcrypt.gensalt(self.rounds)).decode(
            "utf-8"
        )

    def verify(self, password: str, password_hash: str) -> bool:
        if (
            len(password_hash) != _BCRYPT_HASH_LENGTH
            or not password_hash.startswith(_BCRYPT_PREFIXES)
        ):
            raise MalformedHashError("Invalid password hash format")
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except ValueError as exc:
            raise MalformedHashError("Invalid password hash format") from exc

    def verify_dummy(self, password: str) -> None:
        """Spend one verification so unknown users cost the same as wrong passwords"""
        bcrypt.checkpw(_encode(password), self._dummy_hash)
