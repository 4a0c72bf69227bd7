from src.libs.result import Result, Return
from src.app.services.errors import TokenError
from src.app.services.token_service import TokenClaims, TokenService
from .token_errors import token_error


class VerifyAccessUseCase:
    """Stateless access token check used by HTTP and WebSocket authentication"""

    def __init__(self, tokens: TokenService):
        self.tokens = tokens

    def execute(self, token: str) -> Result[TokenClaims]:
        try:
            return Return.ok(self.tokens.verify_access(token))
        except TokenError as exc:
            return Return.err(token_error(exc))
