"""JWT token issuing and verification.

MVP NOTE: Using HS256 (symmetric HMAC) with one shared JWT_SECRET.
MVP NOTE: No token revocation. Once issued, tokens are valid until expiry.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import Settings
from src.tm_common.errors import InvalidTokenError

_TOKEN_TYPE = "access"


class JwtHandler:
    """Issues and verifies bearer tokens.

    Built once from Settings at app construction and shared via app.state;
    it holds no other state.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expire = timedelta(minutes=expire_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "JwtHandler":
        return cls(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.JWT_EXPIRE_MINUTES)

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return int(self._expire.total_seconds())

    def issue(self, user_id: str) -> str:
        """Issue a time-limited access token for user_id."""
        now = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "type": _TOKEN_TYPE,
            "iat": now,
            "exp": now + self._expire,
        }
        return str(jwt.encode(payload, self._secret, algorithm=self._algorithm))

    def authenticate(self, token: str) -> str:
        """Verify token and return the user id it was issued for.

        Raises:
            InvalidTokenError: bad signature, expired, wrong type or no subject.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],  # Explicit list prevents algorithm confusion
            )
        except JWTError:
            raise InvalidTokenError() from None

        if payload.get("type") != _TOKEN_TYPE:
            raise InvalidTokenError()
        user_id = payload.get("sub")
        if not user_id:
            raise InvalidTokenError()
        return str(user_id)
