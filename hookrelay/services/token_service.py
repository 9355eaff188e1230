from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from hookrelay.config.settings import Settings, get_settings
from hookrelay.core.exceptions import AuthenticationError

# Only the HMAC family is accepted; anything else (RS*, ES*, "none") is
# rejected before the signature is even considered.
ALLOWED_ALGORITHMS = ["HS256", "HS384", "HS512"]


class TokenService:
    """
    Issues and validates the bearer credentials used by protected routes.

    Validation is pure: it never touches persistence. The caller id it
    returns is trusted as-is by the ownership checks.
    """

    def __init__(self, settings: Settings | None = None, secret_key: str | None = None):
        self.settings = settings or get_settings()

        # JWT configuration
        self.SECRET_KEY = secret_key or self.settings.JWT_SECRET_KEY
        self.ALGORITHM = "HS256"
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.settings.ACCESS_TOKEN_EXPIRE_MINUTES

    def create_access_token(
        self,
        user_id: str,
        email: str | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        Create a signed access token

        Args:
            user_id: Subject of the token
            email: Optional email claim
            expires_delta: Lifetime (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES))

        to_encode: dict[str, Any] = {"sub": user_id, "iat": now, "exp": expire}
        if email:
            to_encode["email"] = email

        return jwt.encode(to_encode, self.SECRET_KEY, algorithm=self.ALGORITHM)

    def decode_token(self, token: str) -> dict[str, Any]:
        """
        Verify signature, algorithm and expiry, returning the claims.

        Raises:
            AuthenticationError: malformed, expired, tampered or wrong-algorithm token
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise AuthenticationError(f"malformed token: {e}") from e

        algorithm = header.get("alg")
        if algorithm not in ALLOWED_ALGORITHMS:
            raise AuthenticationError(f"unexpected signing method: {algorithm}")

        try:
            return jwt.decode(token, self.SECRET_KEY, algorithms=ALLOWED_ALGORITHMS)
        except ExpiredSignatureError as e:
            raise AuthenticationError("token expired") from e
        except JWTError as e:
            raise AuthenticationError(f"invalid token: {e}") from e

    def validate(self, token: str) -> str:
        """
        Validate a bearer token and return the caller id.

        The id comes from the `sub` claim, falling back to `id` for tokens
        minted by the web client.

        Raises:
            AuthenticationError: token invalid or without a caller id
        """
        payload = self.decode_token(token)
        return self.caller_id_from_claims(payload)

    @staticmethod
    def caller_id_from_claims(payload: dict[str, Any]) -> str:
        user_id = payload.get("sub")
        if user_id is None:
            user_id = payload.get("id")
        if not isinstance(user_id, str) or not user_id:
            raise AuthenticationError("user id not found in token")
        return user_id
