"""Background removal of expired login and email change tokens.

Lookups already ignore expired rows; the reaper only reclaims the space.
"""

import asyncio
from dataclasses import dataclass

from nonceauth.core.logging import get_logger
from nonceauth.infrastructure.persistence.database import DatabaseManager
from nonceauth.infrastructure.persistence.repositories import (
    EmailChangeTokenRepository,
    LoginTokenRepository,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReapResult:
    login_tokens: int
    email_change_tokens: int

    @property
    def total(self) -> int:
        return self.login_tokens + self.email_change_tokens


class ExpiryReaper:
    """Periodically deletes expired tokens.

    Args:
        db_manager: Database manager providing sessions.
        interval_seconds: Delay between passes.
    """

    def __init__(self, db_manager: DatabaseManager, interval_seconds: float = 60) -> None:
        self.db_manager = db_manager
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    async def run_once(self) -> ReapResult:
        """Delete every expired token in one transaction."""
        async with self.db_manager.session() as session:
            login_tokens = await LoginTokenRepository(session).delete_expired()
            email_change_tokens = await EmailChangeTokenRepository(session).delete_expired()
            await session.commit()

        result = ReapResult(login_tokens=login_tokens, email_change_tokens=email_change_tokens)
        if result.total:
            logger.info(
                "Expired tokens reaped",
                login_tokens=login_tokens,
                email_change_tokens=email_change_tokens,
            )
        return result

    async def _run(self) -> None:
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Token reaper pass failed", error=str(e), exc_info=True)
            await asyncio.sleep(self.interval_seconds)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background loop. Must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Token reaper started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Token reaper stopped")
