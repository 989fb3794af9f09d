"""JWT token creation and verification for the web channel.

Tokens carry the account id (lower-cased email) as ``sub``. HS256 with one
shared JWT_SECRET; no revocation list, so a token stays valid until expiry
even if the account is blocked. get_current_user re-checks the account status
on every request to close that gap for blocked accounts.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.bj_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)


def _issue(account_id: str, token_type: str, lifetime: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": account_id,
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(account_id: str) -> str:
    """Short-lived access token (JWT_EXPIRE_MINUTES)."""
    return _issue(account_id, "access", _ACCESS_EXPIRE)


def create_refresh_token(account_id: str) -> str:
    """Long-lived refresh token (JWT_REFRESH_EXPIRE_DAYS). Not rotated on use."""
    return _issue(account_id, "refresh", _REFRESH_EXPIRE)


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a JWT token.

    Args:
        token: Raw JWT string.
        expected_type: "access" or "refresh"; a token of the other type is rejected.

    Raises:
        InvalidCredentialsError: bad or expired token when expected_type="access".
        InvalidRefreshTokenError: bad or expired token when expected_type="refresh".
    """
    payload: dict[str, str] = {}
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        _raise_auth_error(expected_type)

    if payload.get("type") != expected_type or not payload.get("sub"):
        _raise_auth_error(expected_type)

    return payload


def _raise_auth_error(expected_type: str) -> None:
    if expected_type == "access":
        raise InvalidCredentialsError()
    raise InvalidRefreshTokenError()
