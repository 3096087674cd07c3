from typing import Optional

import anyio
from anyio.abc import TaskGroup

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.command.reclaim_expired_reservations_use_case import (
    ReclaimExpiredReservationsUseCase,
)
from ticket_inventory.service.ticketing.app.command.redeliver_undelivered_messages_use_case import (
    RedeliverUndeliveredMessagesUseCase,
)


class ReservationExpirySweeper:
    """
    Periodic housekeeping on the application's event loop.

    Every interval: return lapsed reservations to the pool, then retry parked
    outbound messages. A failed pass is logged and the next one runs on schedule.
    """

    def __init__(
        self,
        *,
        reclaim_use_case: ReclaimExpiredReservationsUseCase,
        redeliver_use_case: RedeliverUndeliveredMessagesUseCase,
        interval_seconds: Optional[float] = None,
    ) -> None:
        self.reclaim_use_case = reclaim_use_case
        self.redeliver_use_case = redeliver_use_case
        self.interval_seconds = interval_seconds or settings.RESERVATION_SWEEP_INTERVAL_SECONDS

    async def start(self, *, task_group: TaskGroup) -> None:
        task_group.start_soon(self._sweep_loop)  # pyrefly: ignore[bad-argument-type]
        Logger.base.info(f'⏰ [SWEEPER] Started, every {self.interval_seconds}s')

    async def _sweep_loop(self) -> None:
        while True:
            await anyio.sleep(self.interval_seconds)
            await self.run_once()

    async def run_once(self) -> None:
        try:
            await self.reclaim_use_case.execute()
        except Exception as e:
            Logger.base.exception(f'❌ [SWEEPER] Reclaim pass failed: {type(e).__name__}')

        try:
            await self.redeliver_use_case.execute()
        except Exception as e:
            Logger.base.exception(f'❌ [SWEEPER] Redelivery pass failed: {type(e).__name__}')
