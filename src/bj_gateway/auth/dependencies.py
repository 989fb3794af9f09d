"""FastAPI dependency: get_current_user.

Usage in any protected router:
    from src.bj_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(account: Account = Depends(get_current_user)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.bj_account.domain.models import Account
from src.bj_account.domain.repository import KeyValueStoreProtocol
from src.bj_account.infrastructure.kv_factory import get_kv_store
from src.bj_account.infrastructure.persistence import AggregateRepository, canonical_key
from src.bj_common.errors import AccountDisabledError, InvalidCredentialsError
from src.bj_gateway.auth.jwt_handler import decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)

_repo = AggregateRepository()


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    kv: KeyValueStoreProtocol = Depends(get_kv_store),
) -> Account:
    """Resolve the Bearer token to the Account stored in the canonical aggregate.

    Raises HTTP 401 if the token is missing, invalid, expired, or names an
    account that has no canonical copy. Raises AccountDisabledError (403)
    for blocked accounts.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    aggregate = await _repo.load(kv, canonical_key(payload["sub"]))
    account = aggregate.account
    if account is None:
        raise _CREDENTIALS_EXCEPTION

    if not account.is_active:
        raise AccountDisabledError()

    return account
