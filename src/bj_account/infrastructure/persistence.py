"""AggregateRepository — one aggregate per KV key, plus the account directory.

Key layout:
    tgchat:{chat_id}        chat session aggregate
    account:{account_id}    canonical aggregate of a registered account
    nickname:{lower}        nickname index -> account_id
    authcode:{code}         one-time link code -> account_id (TTL)

CONCURRENCY NOTE: every request does one load -> transform -> save with no
lock and no compare-and-swap. Two writers racing on the same key lose the
earlier save (last writer wins). Hardening would mean a version field plus
WATCH/MULTI on Redis; the KV protocol deliberately does not expose it yet.
"""

import logging

from config.settings import settings
from src.bj_account.domain.models import Aggregate
from src.bj_account.domain.repository import KeyValueStoreProtocol
from src.bj_account.infrastructure.codec import decode_aggregate, encode_aggregate

logger = logging.getLogger(__name__)

SESSION_PREFIX = "tgchat:"
CANONICAL_PREFIX = "account:"
NICKNAME_PREFIX = "nickname:"
LINK_CODE_PREFIX = "authcode:"


def session_key(chat_id: int) -> str:
    return f"{SESSION_PREFIX}{chat_id}"


def canonical_key(account_id: str) -> str:
    return f"{CANONICAL_PREFIX}{account_id.strip().lower()}"


def nickname_key(nickname: str) -> str:
    return f"{NICKNAME_PREFIX}{nickname.strip().lower()}"


def link_code_key(code: str) -> str:
    return f"{LINK_CODE_PREFIX}{code.strip()}"


class AggregateRepository:
    def __init__(self, bankroll_cents: int | None = None) -> None:
        self._bankroll_cents = (
            settings.DEFAULT_BANKROLL_CENTS if bankroll_cents is None else bankroll_cents
        )

    async def load(self, kv: KeyValueStoreProtocol, key: str) -> Aggregate:
        """Never raises on bad data: absent or malformed payloads decode to defaults."""
        raw = await kv.get(key)
        aggregate = decode_aggregate(raw, self._bankroll_cents)
        if raw is None:
            logger.debug("No aggregate under %s, starting fresh", key)
        return aggregate

    async def save(self, kv: KeyValueStoreProtocol, key: str, aggregate: Aggregate) -> None:
        await kv.put(key, encode_aggregate(aggregate))

    async def exists(self, kv: KeyValueStoreProtocol, key: str) -> bool:
        return await kv.get(key) is not None

    # -- account directory ---------------------------------------------------

    async def account_exists(self, kv: KeyValueStoreProtocol, account_id: str) -> bool:
        aggregate = await self.load(kv, canonical_key(account_id))
        return aggregate.account is not None

    async def nickname_taken(self, kv: KeyValueStoreProtocol, nickname: str) -> bool:
        return await kv.get(nickname_key(nickname)) is not None

    async def claim_nickname(
        self, kv: KeyValueStoreProtocol, nickname: str, account_id: str
    ) -> None:
        await kv.put(nickname_key(nickname), account_id.encode("utf-8"))

    async def list_account_ids(self, kv: KeyValueStoreProtocol) -> list[str]:
        keys = await kv.list(CANONICAL_PREFIX)
        return [k[len(CANONICAL_PREFIX):] for k in keys]
