"""Unit tests for SyncService: checkout/commit, merge rules, link codes."""

from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from src.bj_account.domain.models import Account, Aggregate, Leg, LoginDialog
from src.bj_account.infrastructure.kv_memory import MemoryKeyValueStore
from src.bj_account.infrastructure.persistence import (
    AggregateRepository,
    canonical_key,
    link_code_key,
    session_key,
)
from src.bj_clearing.domain.settlement import WagerDraft, add_wager
from src.bj_common.enums import WagerKind, WagerStatus
from src.bj_common.errors import AccountNotFoundError, LinkCodeNotFoundError
from src.bj_sync.application.service import SyncService, TelegramLink

NOW = datetime(2026, 3, 1, tzinfo=UTC)
BANK = 100000
CHAT = session_key(777)


def _account() -> Account:
    return Account(
        id="alice@example.com",
        display_name="alice",
        credential_hash="x",
        registered_at=NOW,
        referral_code="ALICE0001",
    )


def _with_wager(agg: Aggregate, status: WagerStatus = WagerStatus.WON) -> Aggregate:
    draft = WagerDraft(
        sport="Football",
        bookmaker="",
        kind=WagerKind.SINGLE,
        legs=[Leg(home="A", away="B", market="1")],
        stake_cents=10000,
        odds=Decimal("2.0"),
        status=status,
    )
    agg, _, _ = add_wager(agg, draft, NOW)
    return agg


@pytest.fixture
def repo() -> AggregateRepository:
    return AggregateRepository(bankroll_cents=BANK)


@pytest.fixture
def sync(repo: AggregateRepository) -> SyncService:
    return SyncService(repo, link_code_ttl_seconds=300)


class TestMergeRules:
    async def test_no_canonical_session_is_promoted(
        self, kv: MemoryKeyValueStore, repo: AggregateRepository, sync: SyncService
    ) -> None:
        session = _with_wager(replace(Aggregate.fresh(BANK), dialog=LoginDialog()))
        merged = await sync.on_authenticated(
            kv, CHAT, session, _account(), TelegramLink(chat_id=777, handle="alice_tg")
        )
        assert merged.dialog is None
        assert len(merged.wagers) == 1
        assert merged.account is not None
        assert merged.account.telegram_chat_id == 777
        assert merged.account.telegram_handle == "alice_tg"

        canonical = await repo.load(kv, canonical_key("alice@example.com"))
        assert canonical == merged
        assert await repo.load(kv, CHAT) == merged

    async def test_existing_canonical_wins(
        self, kv: MemoryKeyValueStore, repo: AggregateRepository, sync: SyncService
    ) -> None:
        web = _with_wager(replace(Aggregate.fresh(BANK), account=_account()), WagerStatus.LOST)
        await repo.save(kv, canonical_key("alice@example.com"), web)

        session = _with_wager(_with_wager(Aggregate.fresh(BANK)))
        merged = await sync.on_authenticated(
            kv, CHAT, session, _account(), TelegramLink(chat_id=777)
        )
        assert [w.id for w in merged.wagers] == [w.id for w in web.wagers]
        assert merged.balance_cents == web.balance_cents
        assert merged.ledger == web.ledger
        assert merged.account is not None and merged.account.telegram_chat_id == 777
        assert await repo.load(kv, CHAT) == merged


class TestCheckoutCommit:
    async def test_anonymous_session(self, kv: MemoryKeyValueStore, sync: SyncService) -> None:
        agg = await sync.checkout(kv, CHAT)
        assert agg.account is None
        assert agg.balance_cents == BANK

    async def test_bound_session_reads_canonical_with_own_dialog(
        self, kv: MemoryKeyValueStore, repo: AggregateRepository, sync: SyncService
    ) -> None:
        await sync.on_authenticated(kv, CHAT, Aggregate.fresh(BANK), _account())
        # web channel books a wager on the canonical copy only
        web = _with_wager(await repo.load(kv, canonical_key("alice@example.com")))
        await sync.commit(kv, None, web)
        # chat has a dialog open on its own copy
        session = await repo.load(kv, CHAT)
        await repo.save(kv, CHAT, replace(session, dialog=LoginDialog()))

        agg = await sync.checkout(kv, CHAT)
        assert len(agg.wagers) == 1
        assert isinstance(agg.dialog, LoginDialog)

    async def test_commit_writes_canonical_without_dialog(
        self, kv: MemoryKeyValueStore, repo: AggregateRepository, sync: SyncService
    ) -> None:
        agg = replace(Aggregate.fresh(BANK), account=_account(), dialog=LoginDialog())
        await sync.commit(kv, CHAT, agg)
        assert (await repo.load(kv, CHAT)).dialog is not None
        assert (await repo.load(kv, canonical_key("alice@example.com"))).dialog is None

    async def test_anonymous_commit_leaves_no_canonical(
        self, kv: MemoryKeyValueStore, sync: SyncService
    ) -> None:
        await sync.commit(kv, CHAT, Aggregate.fresh(BANK))
        assert await kv.list("account:") == []


class TestLinkCodes:
    async def test_code_shape_and_ttl(self, kv: MemoryKeyValueStore, sync: SyncService) -> None:
        code = await sync.issue_link_code(kv, "alice@example.com")
        assert len(code) == 6 and code.isdigit()
        assert await kv.get(link_code_key(code)) == b"alice@example.com"

    async def test_scenario_e_code_is_single_use(
        self, kv: MemoryKeyValueStore, repo: AggregateRepository, sync: SyncService
    ) -> None:
        await repo.save(
            kv, canonical_key("alice@example.com"), replace(Aggregate.fresh(BANK), account=_account())
        )
        code = await sync.issue_link_code(kv, "alice@example.com")

        merged = await sync.redeem_link_code(kv, code, CHAT, Aggregate.fresh(BANK))
        assert merged.account is not None
        assert await kv.get(link_code_key(code)) is None

        with pytest.raises(LinkCodeNotFoundError):
            await sync.redeem_link_code(kv, code, CHAT, Aggregate.fresh(BANK))

    async def test_unknown_code(self, kv: MemoryKeyValueStore, sync: SyncService) -> None:
        with pytest.raises(LinkCodeNotFoundError):
            await sync.redeem_link_code(kv, "000000", CHAT, Aggregate.fresh(BANK))

    async def test_code_for_vanished_account(
        self, kv: MemoryKeyValueStore, sync: SyncService
    ) -> None:
        code = await sync.issue_link_code(kv, "ghost@example.com")
        with pytest.raises(AccountNotFoundError):
            await sync.redeem_link_code(kv, code, CHAT, Aggregate.fresh(BANK))
        assert await kv.get(link_code_key(code)) is None
