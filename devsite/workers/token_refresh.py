from __future__ import annotations

import asyncio
import logging

from devsite.application.site import SiteService
from devsite.core.errors import DevsiteError

logger = logging.getLogger(__name__)


class TokenRefreshWorker:
    """Periodically refreshes the third-party access token in the background."""

    def __init__(self, service: SiteService, interval: float) -> None:
        self._service = service
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> None:
        """Run a single refresh check; failures are logged, never raised."""

        try:
            await asyncio.to_thread(self._service.refresh_token_if_due)
        except DevsiteError as exc:
            logger.error("Token refresh failed: %s", exc.message)
        except Exception:
            logger.exception("Unexpected error while refreshing token")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.tick()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="token-refresh")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
