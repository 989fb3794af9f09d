"""Unit tests for UserService against the in-memory store."""

from dataclasses import replace
from datetime import UTC, datetime

import pytest

from src.bj_account.infrastructure.kv_memory import MemoryKeyValueStore
from src.bj_account.infrastructure.persistence import AggregateRepository, canonical_key
from src.bj_common.enums import AccountStatus, Channel
from src.bj_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NicknameExistsError,
)
from src.bj_gateway.auth.jwt_handler import decode_token
from src.bj_gateway.user.service import (
    REFERRAL_BONUS_FOR_INVITEE,
    REFERRAL_REWARD_FOR_REFERRER,
    UserService,
    make_referral_code,
)


@pytest.fixture
def repo() -> AggregateRepository:
    return AggregateRepository(bankroll_cents=100000)


@pytest.fixture
def service(repo: AggregateRepository) -> UserService:
    return UserService(repo)


class TestRegister:
    async def test_register_creates_canonical(
        self, kv: MemoryKeyValueStore, repo: AggregateRepository, service: UserService
    ) -> None:
        account = await service.register(kv, "Alice@Example.com", "alice", "secret1")
        assert account.id == "alice@example.com"
        assert account.origin_channel == Channel.WEB
        assert account.credential_hash != "secret1"

        agg = await repo.load(kv, canonical_key("alice@example.com"))
        assert agg.account == account
        assert agg.balance_cents == 100000

    async def test_duplicate_email(self, kv: MemoryKeyValueStore, service: UserService) -> None:
        await service.register(kv, "alice@example.com", "alice", "secret1")
        with pytest.raises(EmailExistsError):
            await service.register(kv, "ALICE@example.com", "alice2", "secret1")

    async def test_duplicate_nickname(self, kv: MemoryKeyValueStore, service: UserService) -> None:
        await service.register(kv, "alice@example.com", "alice", "secret1")
        with pytest.raises(NicknameExistsError):
            await service.register(kv, "other@example.com", "ALICE", "secret1")

    async def test_create_account_does_not_persist_aggregate(
        self, kv: MemoryKeyValueStore, repo: AggregateRepository, service: UserService
    ) -> None:
        account = await service.create_account(
            kv, "bot@example.com", "botuser", "secret1", Channel.TELEGRAM
        )
        assert account.origin_channel == Channel.TELEGRAM
        assert not await repo.account_exists(kv, "bot@example.com")
        assert await repo.nickname_taken(kv, "botuser")


class TestReferral:
    def test_code_shape(self) -> None:
        now = datetime(2026, 3, 1, 12, 0, 0, 123000, tzinfo=UTC)
        code = make_referral_code("Big Bob", now)
        assert code.startswith("BIGBOB")
        assert len(code) == len("BIGBOB") + 4
        assert code[-4:].isdigit()

    async def test_reward_both_sides(
        self, kv: MemoryKeyValueStore, repo: AggregateRepository, service: UserService
    ) -> None:
        referrer = await service.register(kv, "ref@example.com", "referrer", "secret1")
        invitee = await service.register(
            kv, "new@example.com", "newbie", "secret1", referral_code=referrer.referral_code.lower()
        )
        assert invitee.reward_points == REFERRAL_BONUS_FOR_INVITEE
        agg = await repo.load(kv, canonical_key("ref@example.com"))
        assert agg.account is not None
        assert agg.account.reward_points == REFERRAL_REWARD_FOR_REFERRER

    async def test_unknown_code_ignored(self, kv: MemoryKeyValueStore, service: UserService) -> None:
        account = await service.register(
            kv, "new@example.com", "newbie", "secret1", referral_code="NOPE0000"
        )
        assert account.reward_points == 0


class TestLogin:
    async def test_login_issues_tokens(self, kv: MemoryKeyValueStore, service: UserService) -> None:
        await service.register(kv, "alice@example.com", "alice", "secret1")
        account, access, refresh = await service.login(kv, "alice@example.com", "secret1")
        assert decode_token(access, "access")["sub"] == account.id
        assert decode_token(refresh, "refresh")["sub"] == account.id

    async def test_wrong_password(self, kv: MemoryKeyValueStore, service: UserService) -> None:
        await service.register(kv, "alice@example.com", "alice", "secret1")
        with pytest.raises(InvalidCredentialsError):
            await service.authenticate(kv, "alice@example.com", "wrong-pass")

    async def test_unknown_email(self, kv: MemoryKeyValueStore, service: UserService) -> None:
        with pytest.raises(InvalidCredentialsError):
            await service.authenticate(kv, "nobody@example.com", "secret1")

    async def test_blocked_account(
        self, kv: MemoryKeyValueStore, repo: AggregateRepository, service: UserService
    ) -> None:
        await service.register(kv, "alice@example.com", "alice", "secret1")
        agg = await repo.load(kv, canonical_key("alice@example.com"))
        assert agg.account is not None
        blocked = replace(agg, account=replace(agg.account, status=AccountStatus.BLOCKED))
        await repo.save(kv, canonical_key("alice@example.com"), blocked)
        with pytest.raises(AccountDisabledError):
            await service.authenticate(kv, "alice@example.com", "secret1")

    async def test_refresh(self, kv: MemoryKeyValueStore, service: UserService) -> None:
        await service.register(kv, "alice@example.com", "alice", "secret1")
        _, access, refresh = await service.login(kv, "alice@example.com", "secret1")
        new_access = await service.refresh(refresh)
        assert decode_token(new_access, "access")["sub"] == "alice@example.com"
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh(access)
