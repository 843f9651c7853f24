"""Payment Status Poller

Repeatedly asks the verification endpoint about an outstanding payment until
it reaches a terminal status or the poller is cancelled by its owner.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional
from src.domain.payment import PaymentStatus

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 5.0


class PaymentStatusPoller:
    """
    Fixed-interval polling loop over a verify callable

    Behaviour:
    - Waits interval_seconds, then calls verify()
    - completed: runs on_completed and stops
    - failed/cancelled: runs on_failed(status) and stops
    - pending or a verify error: keeps polling
    - cancel(): stops immediately, no callback runs

    Usage:
        poller = PaymentStatusPoller(verifier, on_completed=show_card)
        poller.start()
        ...
        poller.cancel()  # view torn down
    """

    def __init__(
        self,
        verify: Callable[[], Awaitable[str]],
        on_completed: Optional[Callable[[], Awaitable[None]]] = None,
        on_failed: Optional[Callable[[str], Awaitable[None]]] = None,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_attempts: Optional[int] = None,
    ):
        self.verify = verify
        self.on_completed = on_completed
        self.on_failed = on_failed
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self.attempts = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start polling in the background (idempotent)"""
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        return self._task

    def cancel(self) -> None:
        """Stop polling; safe to call more than once"""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug("Payment poller cancelled")

    async def wait(self) -> Optional[str]:
        """
        Wait for the loop to finish

        Returns:
            Terminal status, or None if cancelled or attempts ran out
        """
        task = self.start()
        try:
            return await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            return None

    async def _run(self) -> Optional[str]:
        while self.max_attempts is None or self.attempts < self.max_attempts:
            await asyncio.sleep(self.interval_seconds)
            self.attempts += 1

            try:
                status = await self.verify()
            except Exception as e:
                logger.warning(f"Payment verification attempt {self.attempts} failed: {e}")
                continue

            if status == PaymentStatus.COMPLETED.value:
                logger.info(f"Payment completed after {self.attempts} checks")
                if self.on_completed:
                    await self.on_completed()
                return status

            if status in (PaymentStatus.FAILED.value, PaymentStatus.CANCELLED.value):
                logger.info(f"Payment ended with status {status} after {self.attempts} checks")
                if self.on_failed:
                    await self.on_failed(status)
                return status

        logger.warning(f"Payment still pending after {self.attempts} checks, giving up")
        return None
