"""SyncService — keeps the chat session copy and the canonical account copy aligned.

Two copies of one user's aggregate can exist:
  - session copy   tgchat:{chat_id}      (what the chat channel writes)
  - canonical copy account:{account_id}  (what the web channel writes)

Merge rule, applied once at authentication time (register, login, link code):
  1. No canonical copy yet: the session aggregate becomes canonical.
  2. Canonical copy exists: canonical wins for wagers, balance, ledger and
     goals. The session only contributes the Telegram link fields of the
     account. The session copy is replaced with the canonical one, dialog
     cleared.

After authentication, every chat commit writes both copies, so the two never
diverge except for the open dialog, which lives on the session copy only.
"""

import logging
import secrets
from dataclasses import dataclass, replace

from config.settings import settings
from src.bj_account.domain.models import Account, Aggregate
from src.bj_account.domain.repository import (
    AggregateRepositoryProtocol,
    KeyValueStoreProtocol,
)
from src.bj_account.infrastructure.persistence import (
    AggregateRepository,
    canonical_key,
    link_code_key,
)
from src.bj_common.errors import AccountNotFoundError, LinkCodeNotFoundError

logger = logging.getLogger(__name__)

_LINK_CODE_ATTEMPTS = 5


@dataclass(frozen=True)
class TelegramLink:
    chat_id: int
    handle: str | None = None


def _apply_link(account: Account, link: TelegramLink | None) -> Account:
    if link is None:
        return account
    return replace(
        account,
        telegram_chat_id=link.chat_id,
        telegram_handle=link.handle or account.telegram_handle,
    )


class SyncService:
    def __init__(
        self,
        repo: AggregateRepositoryProtocol | None = None,
        link_code_ttl_seconds: int | None = None,
    ) -> None:
        self._repo: AggregateRepositoryProtocol = repo or AggregateRepository()
        self._ttl = (
            settings.LINK_CODE_TTL_SECONDS
            if link_code_ttl_seconds is None
            else link_code_ttl_seconds
        )

    async def checkout(self, kv: KeyValueStoreProtocol, session_key: str) -> Aggregate:
        """Load the working aggregate for a chat session.

        A session bound to an account reads the canonical copy, with the
        session's open dialog laid over it.
        """
        session = await self._repo.load(kv, session_key)
        if session.account is None:
            return session
        canonical = await self._repo.load(kv, canonical_key(session.account.id))
        if canonical.account is None:
            logger.warning(
                "Session %s is bound to %s but no canonical copy exists",
                session_key,
                session.account.id,
            )
            return session
        return replace(canonical, dialog=session.dialog)

    async def commit(
        self,
        kv: KeyValueStoreProtocol,
        session_key: str | None,
        aggregate: Aggregate,
    ) -> None:
        """Write the session copy (if any) and, once authenticated, the canonical copy."""
        if session_key is not None:
            await self._repo.save(kv, session_key, aggregate)
        if aggregate.account is not None:
            await self._repo.save(
                kv, canonical_key(aggregate.account.id), replace(aggregate, dialog=None)
            )

    async def on_authenticated(
        self,
        kv: KeyValueStoreProtocol,
        session_key: str,
        session: Aggregate,
        account: Account,
        link: TelegramLink | None = None,
    ) -> Aggregate:
        """Bind a chat session to an account and merge the two copies."""
        canonical = await self._repo.load(kv, canonical_key(account.id))
        if canonical.account is None:
            merged = replace(session, account=_apply_link(account, link), dialog=None)
            logger.info("Session %s promoted to canonical for %s", session_key, account.id)
        else:
            merged = replace(
                canonical, account=_apply_link(canonical.account, link), dialog=None
            )
            logger.info(
                "Session %s merged into canonical %s (%d session wagers dropped)",
                session_key,
                account.id,
                len(session.wagers),
            )
        await self.commit(kv, session_key, merged)
        return merged

    async def issue_link_code(self, kv: KeyValueStoreProtocol, account_id: str) -> str:
        """Six-digit one-time code the user types into the bot to bind the chat."""
        code = f"{secrets.randbelow(1_000_000):06d}"
        for _ in range(_LINK_CODE_ATTEMPTS):
            if await kv.get(link_code_key(code)) is None:
                break
            code = f"{secrets.randbelow(1_000_000):06d}"
        await kv.put(link_code_key(code), account_id.encode("utf-8"), ttl_seconds=self._ttl)
        logger.info("Link code issued for %s (ttl=%ss)", account_id, self._ttl)
        return code

    async def redeem_link_code(
        self,
        kv: KeyValueStoreProtocol,
        code: str,
        session_key: str,
        session: Aggregate,
        link: TelegramLink | None = None,
    ) -> Aggregate:
        """Consume a link code: merge the session into that account, then delete the code.

        Raises:
            LinkCodeNotFoundError: code unknown or expired (single use).
            AccountNotFoundError: code points at an account with no canonical copy.
        """
        raw = await kv.get(link_code_key(code))
        if raw is None:
            raise LinkCodeNotFoundError()
        account_id = raw.decode("utf-8")
        canonical = await self._repo.load(kv, canonical_key(account_id))
        if canonical.account is None:
            await kv.delete(link_code_key(code))
            raise AccountNotFoundError(account_id)

        merged = await self.on_authenticated(kv, session_key, session, canonical.account, link)
        await kv.delete(link_code_key(code))
        logger.info("Link code redeemed: session %s -> %s", session_key, account_id)
        return merged
