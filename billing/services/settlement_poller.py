import asyncio
from typing import Awaitable, Callable, Optional

from utils.logger import logger
from ..errors import BillingError, SettlementTimeout
from ..models import Order


class SettlementPoller:
    """
    Polls an order's status until the order service moves it out of "new".

    Ticks are serialized: sleep, check, decide, and only then sleep again, so there is
    never more than one status request in flight for a watched order. A failed check is
    reported and the next tick still happens after the same interval.
    """

    def __init__(self,
                 order_service,
                 *,
                 interval_s: float = 2.0,
                 max_attempts: int = 0,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 on_error: Optional[Callable[[BillingError], None]] = None,
                 ) -> None:
        self._orders = order_service
        self.interval_s = interval_s
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._on_error = on_error

    async def wait_settled(self, order_id: str) -> Order:
        """
        Return the first status payload whose status is not "new".
        Raises SettlementTimeout after max_attempts checks (0 = never).
        """
        attempts = 0
        while True:
            await self._sleep(self.interval_s)
            attempts += 1
            try:
                order = await self._orders.get_order(order_id)
            except BillingError as e:
                logger.debug(f"[settlement] status check #{attempts} for order={order_id} failed: {e}")
                if self._on_error:
                    self._on_error(e)
            else:
                logger.debug(f"[settlement] order={order_id} check #{attempts} status={order.status}")
                if order.is_settled:
                    logger.info(f"[settlement] order={order_id} settled status={order.status} after {attempts} checks")
                    return order

            if self.max_attempts and attempts >= self.max_attempts:
                raise SettlementTimeout(
                    "order still unsettled", order_id=order_id, attempts=attempts,
                    waited_s=round(attempts * self.interval_s, 3),
                )
