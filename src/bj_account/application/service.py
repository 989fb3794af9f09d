"""JournalApplicationService — thin composition layer for the web channel.

Every mutation is one load -> pure transform -> save of the canonical
aggregate (see AggregateRepository for the last-writer-wins caveat).
Input rules are checked before the transform; the transform itself never
raises. Goals are re-derived after each mutation and on each read.
"""

import logging

from src.bj_account.application.schemas import (
    AccountInfo,
    AccountSnapshot,
    AnalyticsResponse,
    BalanceResponse,
    CreateGoalRequest,
    CreateWagerRequest,
    GoalItem,
    InvariantReport,
    LedgerEntryItem,
    LedgerResponse,
    SetWagerStatusRequest,
    UpdateWagerRequest,
    WagerItem,
    WagerMutationResponse,
    cursor_decode,
    cursor_encode,
)
from src.bj_account.domain.models import Aggregate, GoalScope, LedgerEntry
from src.bj_account.domain.repository import (
    AggregateRepositoryProtocol,
    KeyValueStoreProtocol,
)
from src.bj_account.infrastructure.persistence import AggregateRepository, canonical_key
from src.bj_clearing.domain import settlement
from src.bj_clearing.domain.analytics import summarize
from src.bj_clearing.domain.invariants import verify_aggregate_invariants
from src.bj_clearing.domain.validation import (
    resolve_kind,
    validate_balance,
    validate_goal,
    validate_goal_scope,
    validate_legs,
    validate_odds,
    validate_stake,
    validate_status_change,
)
from src.bj_common.cents import cents_to_display
from src.bj_common.datetime_utils import ensure_utc, utc_now
from src.bj_common.enums import WagerStatus
from src.bj_common.errors import (
    AccountNotFoundError,
    GoalNotFoundError,
    WagerNotFoundError,
)
from src.bj_goals.domain.evaluator import refresh_goals
from src.bj_goals.domain.mutations import GoalDraft, add_goal, delete_goal
from src.bj_sync.application.service import SyncService

logger = logging.getLogger(__name__)


class JournalApplicationService:
    def __init__(
        self,
        repo: AggregateRepositoryProtocol | None = None,
        sync: SyncService | None = None,
    ) -> None:
        self._repo: AggregateRepositoryProtocol = repo or AggregateRepository()
        self._sync = sync or SyncService(self._repo)

    async def _load(self, kv: KeyValueStoreProtocol, account_id: str) -> Aggregate:
        aggregate = await self._repo.load(kv, canonical_key(account_id))
        if aggregate.account is None:
            raise AccountNotFoundError(account_id)
        return aggregate

    async def _commit(self, kv: KeyValueStoreProtocol, aggregate: Aggregate) -> Aggregate:
        aggregate = refresh_goals(aggregate)
        await self._sync.commit(kv, None, aggregate)
        return aggregate

    @staticmethod
    def _mutation_result(
        aggregate: Aggregate, wager_id: str | None, entry: LedgerEntry | None
    ) -> WagerMutationResponse:
        wager = aggregate.find_wager(wager_id) if wager_id else None
        return WagerMutationResponse(
            wager=WagerItem.from_domain(wager) if wager else None,
            balance_cents=aggregate.balance_cents,
            balance_display=cents_to_display(aggregate.balance_cents),
            ledger_entry_id=entry.id if entry else None,
        )

    # -- reads ---------------------------------------------------------------

    async def get_snapshot(self, kv: KeyValueStoreProtocol, account_id: str) -> AccountSnapshot:
        aggregate = refresh_goals(await self._load(kv, account_id))
        assert aggregate.account is not None
        return AccountSnapshot(
            account=AccountInfo.from_domain(aggregate.account),
            balance=BalanceResponse.from_cents(
                account_id, aggregate.balance_cents, aggregate.initial_balance_cents
            ),
            wagers=[WagerItem.from_domain(w) for w in aggregate.wagers],
            goals=[GoalItem.from_domain(g) for g in aggregate.goals],
            ledger_size=len(aggregate.ledger),
            analytics=AnalyticsResponse.from_domain(summarize(aggregate)),
        )

    async def get_balance(self, kv: KeyValueStoreProtocol, account_id: str) -> BalanceResponse:
        aggregate = await self._load(kv, account_id)
        return BalanceResponse.from_cents(
            account_id, aggregate.balance_cents, aggregate.initial_balance_cents
        )

    async def list_wagers(
        self,
        kv: KeyValueStoreProtocol,
        account_id: str,
        status: WagerStatus | None = None,
    ) -> list[WagerItem]:
        aggregate = await self._load(kv, account_id)
        return [
            WagerItem.from_domain(w)
            for w in aggregate.wagers
            if status is None or w.status == status
        ]

    async def get_wager(
        self, kv: KeyValueStoreProtocol, account_id: str, wager_id: str
    ) -> WagerItem:
        aggregate = await self._load(kv, account_id)
        wager = aggregate.find_wager(wager_id)
        if wager is None:
            raise WagerNotFoundError(wager_id)
        return WagerItem.from_domain(wager)

    async def list_ledger(
        self,
        kv: KeyValueStoreProtocol,
        account_id: str,
        cursor: str | None,
        limit: int,
        kind: str | None,
    ) -> LedgerResponse:
        """Newest first. The cursor is the id of the last entry on the previous page."""
        aggregate = await self._load(kv, account_id)
        cursor_id = cursor_decode(cursor)
        entries = [
            e for e in reversed(aggregate.ledger)
            if (cursor_id is None or e.id < cursor_id) and (kind is None or e.kind.value == kind)
        ]
        has_more = len(entries) > limit
        page = entries[:limit]

        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def list_goals(self, kv: KeyValueStoreProtocol, account_id: str) -> list[GoalItem]:
        aggregate = refresh_goals(await self._load(kv, account_id))
        return [GoalItem.from_domain(g) for g in aggregate.goals]

    async def verify(self, kv: KeyValueStoreProtocol, account_id: str) -> InvariantReport:
        violations = verify_aggregate_invariants(await self._load(kv, account_id))
        return InvariantReport(ok=not violations, violations=violations)

    # -- bank ----------------------------------------------------------------

    async def set_balance(
        self, kv: KeyValueStoreProtocol, account_id: str, new_balance_cents: int
    ) -> BalanceResponse:
        validate_balance(new_balance_cents)
        aggregate = await self._load(kv, account_id)
        aggregate, entry = settlement.set_balance(aggregate, new_balance_cents)
        if entry is not None:
            aggregate = await self._commit(kv, aggregate)
        return BalanceResponse.from_cents(
            account_id,
            aggregate.balance_cents,
            aggregate.initial_balance_cents,
            entry.id if entry else None,
        )

    # -- wagers --------------------------------------------------------------

    async def create_wager(
        self, kv: KeyValueStoreProtocol, account_id: str, body: CreateWagerRequest
    ) -> WagerMutationResponse:
        legs = [leg.to_domain() for leg in body.legs]
        validate_legs(legs)
        kind = resolve_kind(body.kind, legs)
        validate_stake(body.stake_cents)
        validate_odds(body.odds)
        validate_status_change(body.status, body.profit_cents)

        aggregate = await self._load(kv, account_id)
        draft = settlement.WagerDraft(
            sport=body.sport,
            bookmaker=body.bookmaker,
            kind=kind,
            legs=legs,
            stake_cents=body.stake_cents,
            odds=body.odds,
            status=body.status,
            manual_profit_cents=body.profit_cents,
            tags=body.tags,
            notes=body.notes,
        )
        aggregate, wager, entry = settlement.add_wager(aggregate, draft)
        aggregate = await self._commit(kv, aggregate)
        return self._mutation_result(aggregate, wager.id, entry)

    async def update_wager(
        self,
        kv: KeyValueStoreProtocol,
        account_id: str,
        wager_id: str,
        body: UpdateWagerRequest,
    ) -> WagerMutationResponse:
        aggregate = await self._load(kv, account_id)
        wager = aggregate.find_wager(wager_id)
        if wager is None:
            raise WagerNotFoundError(wager_id)

        legs = [leg.to_domain() for leg in body.legs] if body.legs is not None else None
        if legs is not None:
            validate_legs(legs)
        if body.kind is not None or legs is not None:
            resolve_kind(body.kind or wager.kind, legs if legs is not None else wager.legs)
        if body.stake_cents is not None:
            validate_stake(body.stake_cents)
        if body.odds is not None:
            validate_odds(body.odds)

        changes = settlement.WagerChanges(
            sport=body.sport,
            bookmaker=body.bookmaker,
            kind=body.kind,
            legs=legs,
            stake_cents=body.stake_cents,
            odds=body.odds,
            tags=body.tags,
            notes=body.notes,
        )
        aggregate, entry = settlement.update_wager(aggregate, wager_id, changes)
        aggregate = await self._commit(kv, aggregate)
        return self._mutation_result(aggregate, wager_id, entry)

    async def set_wager_status(
        self,
        kv: KeyValueStoreProtocol,
        account_id: str,
        wager_id: str,
        body: SetWagerStatusRequest,
    ) -> WagerMutationResponse:
        validate_status_change(body.status, body.profit_cents)
        aggregate = await self._load(kv, account_id)
        if aggregate.find_wager(wager_id) is None:
            raise WagerNotFoundError(wager_id)

        aggregate, entry = settlement.apply_status_change(
            aggregate, wager_id, body.status, body.profit_cents
        )
        aggregate = await self._commit(kv, aggregate)
        return self._mutation_result(aggregate, wager_id, entry)

    async def delete_wager(
        self, kv: KeyValueStoreProtocol, account_id: str, wager_id: str
    ) -> WagerMutationResponse:
        aggregate = await self._load(kv, account_id)
        if aggregate.find_wager(wager_id) is None:
            raise WagerNotFoundError(wager_id)

        aggregate, entry = settlement.delete_wager(aggregate, wager_id)
        aggregate = await self._commit(kv, aggregate)
        logger.info("Wager %s deleted for %s", wager_id, account_id)
        return self._mutation_result(aggregate, None, entry)

    # -- goals ---------------------------------------------------------------

    async def create_goal(
        self, kv: KeyValueStoreProtocol, account_id: str, body: CreateGoalRequest
    ) -> GoalItem:
        now = utc_now()
        validate_goal(body.title, body.metric, body.target_value, body.deadline, now)
        validate_goal_scope(body.scope_type, body.scope_value)

        aggregate = await self._load(kv, account_id)
        draft = GoalDraft(
            title=body.title,
            metric=body.metric,
            target_value=body.target_value,
            deadline=ensure_utc(body.deadline),
            scope=GoalScope(type=body.scope_type, value=body.scope_value),
        )
        aggregate, goal = add_goal(aggregate, draft, now)
        await self._commit(kv, aggregate)
        return GoalItem.from_domain(goal)

    async def delete_goal(
        self, kv: KeyValueStoreProtocol, account_id: str, goal_id: str
    ) -> None:
        aggregate = await self._load(kv, account_id)
        if aggregate.find_goal(goal_id) is None:
            raise GoalNotFoundError(goal_id)
        await self._commit(kv, delete_goal(aggregate, goal_id))
