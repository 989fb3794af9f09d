"""User service: register, authenticate, login, refresh.

Accounts live inside canonical aggregates (account:{email}); uniqueness is
checked against the store directory (canonical key for email, nickname index
for nickname). Both the web router and the chat register/login flows go
through this service.
"""

import logging
from dataclasses import replace
from datetime import datetime

from src.bj_account.domain.models import Account
from src.bj_account.domain.repository import (
    AggregateRepositoryProtocol,
    KeyValueStoreProtocol,
)
from src.bj_account.infrastructure.persistence import AggregateRepository, canonical_key
from src.bj_common.datetime_utils import utc_now
from src.bj_common.enums import Channel
from src.bj_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    NicknameExistsError,
)
from src.bj_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.bj_gateway.auth.password import hash_password, verify_password
from src.bj_sync.application.service import SyncService

logger = logging.getLogger(__name__)

REFERRAL_REWARD_FOR_REFERRER = 100
REFERRAL_BONUS_FOR_INVITEE = 50


def normalize_account_id(email: str) -> str:
    return email.strip().lower()


def make_referral_code(nickname: str, now: datetime) -> str:
    """NICKNAME + last four digits of the millisecond clock, e.g. 'ALICE4821'."""
    return f"{''.join(nickname.upper().split())}{int(now.timestamp() * 1000) % 10_000:04d}"


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    def __init__(
        self,
        repo: AggregateRepositoryProtocol | None = None,
        sync: SyncService | None = None,
    ) -> None:
        self._repo: AggregateRepositoryProtocol = repo or AggregateRepository()
        self._sync = sync or SyncService(self._repo)

    async def ensure_email_available(self, kv: KeyValueStoreProtocol, email: str) -> str:
        account_id = normalize_account_id(email)
        if await self._repo.account_exists(kv, account_id):
            raise EmailExistsError()
        return account_id

    async def ensure_nickname_available(self, kv: KeyValueStoreProtocol, nickname: str) -> None:
        if await self._repo.nickname_taken(kv, nickname):
            raise NicknameExistsError()

    async def create_account(
        self,
        kv: KeyValueStoreProtocol,
        email: str,
        nickname: str,
        password: str,
        channel: Channel,
        referral_code: str | None = None,
    ) -> Account:
        """Build a new Account and claim its nickname. The caller persists the aggregate."""
        account_id = await self.ensure_email_available(kv, email)
        nickname = nickname.strip()
        await self.ensure_nickname_available(kv, nickname)

        reward_points = 0
        if referral_code:
            reward_points = await self._reward_referrer(kv, referral_code)

        now = utc_now()
        account = Account(
            id=account_id,
            display_name=nickname,
            credential_hash=hash_password(password),
            registered_at=now,
            referral_code=make_referral_code(nickname, now),
            reward_points=reward_points,
            origin_channel=channel,
        )
        await self._repo.claim_nickname(kv, nickname, account_id)
        logger.info("Account registered: %s via %s", account_id, channel.value)
        return account

    async def register(
        self,
        kv: KeyValueStoreProtocol,
        email: str,
        nickname: str,
        password: str,
        referral_code: str | None = None,
    ) -> Account:
        """Web registration: the new account starts from a fresh canonical aggregate."""
        account = await self.create_account(
            kv, email, nickname, password, Channel.WEB, referral_code
        )
        aggregate = await self._repo.load(kv, canonical_key(account.id))
        await self._sync.commit(kv, None, replace(aggregate, account=account))
        return account

    async def authenticate(self, kv: KeyValueStoreProtocol, email: str, password: str) -> Account:
        """Verify credentials against the canonical copy.

        Unknown email and wrong password both raise InvalidCredentialsError.
        """
        aggregate = await self._repo.load(kv, canonical_key(normalize_account_id(email)))
        account = aggregate.account
        if account is None or not verify_password(password, account.credential_hash):
            raise InvalidCredentialsError()
        if not account.is_active:
            raise AccountDisabledError()
        return account

    async def login(
        self, kv: KeyValueStoreProtocol, email: str, password: str
    ) -> tuple[Account, str, str]:
        account = await self.authenticate(kv, email, password)
        return account, create_access_token(account.id), create_refresh_token(account.id)

    async def refresh(self, refresh_token: str) -> str:
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]))

    async def _reward_referrer(self, kv: KeyValueStoreProtocol, referral_code: str) -> int:
        """Credit the referrer; return the invitee's starting bonus (0 if code unknown)."""
        wanted = referral_code.strip().lower()
        for account_id in await self._repo.list_account_ids(kv):
            aggregate = await self._repo.load(kv, canonical_key(account_id))
            referrer = aggregate.account
            if referrer is None or referrer.referral_code.lower() != wanted:
                continue
            rewarded = replace(
                referrer, reward_points=referrer.reward_points + REFERRAL_REWARD_FOR_REFERRER
            )
            await self._repo.save(kv, canonical_key(account_id), replace(aggregate, account=rewarded))
            logger.info("Referral reward credited to %s", account_id)
            return REFERRAL_BONUS_FOR_INVITEE
        logger.info("Unknown referral code ignored: %s", referral_code)
        return 0
