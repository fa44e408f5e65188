import asyncio
import contextlib
import inspect
import math
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from utils.logger import logger as default_logger
from billing.config import DashboardSettings
from billing.enums import WatchState
from billing.errors import (
    BillingError, UserInputError, OrderInFlightError, SettlementTimeout,
)
from billing.event_bus import (
    EventBus, TOPIC_ACCOUNT, TOPIC_BALANCE, TOPIC_ORDERS, TOPIC_WATCH, TOPIC_ERROR,
)
from billing.models import Account, Order
from billing.services.settlement_poller import SettlementPoller
from billing.stores.account_store import AccountStore
from billing.stores.order_store import OrderStore

PromptFn = Callable[[str, str], Union[Optional[str], Awaitable[Optional[str]]]]

TOP_UP_PROMPT = "Enter top-up amount:"
TOP_UP_DEFAULT = "100"


def parse_amount(raw: Any) -> float:
    """Validate a user-supplied top-up amount: positive and finite."""
    if raw is None or isinstance(raw, bool):
        raise UserInputError("amount is missing")
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            raise UserInputError("amount is empty")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise UserInputError("amount is not a number", amount=raw)
    if not math.isfinite(value) or value <= 0:
        raise UserInputError("amount must be positive and finite", amount=raw)
    return value


class ReconciliationController:
    """
    Owns the user's bill id, the displayed balance and the order history, and runs at
    most one settlement watch at a time.

    Cached values are only ever replaced with what the account/order services return;
    nothing is computed locally. Every change is published on the event bus.
    """

    def __init__(self,
                 settings: DashboardSettings,
                 account_svc,
                 order_svc,
                 *,
                 event_bus: Optional[EventBus] = None,
                 account_store: Optional[AccountStore] = None,
                 order_store: Optional[OrderStore] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 logger=None,
                 ) -> None:
        self.settings = settings
        self.account_svc = account_svc
        self.order_svc = order_svc
        self.event_bus = event_bus or EventBus()
        self.accounts = account_store or AccountStore()
        self.orders = order_store or OrderStore()
        self.log = logger or default_logger
        self.poller = SettlementPoller(
            order_svc,
            interval_s=settings.poll_interval_s,
            max_attempts=settings.max_poll_attempts,
            sleep=sleep,
            on_error=self._report,
        )

        self._state = WatchState.IDLE
        self._watch: Optional[asyncio.Task] = None
        self._watched_order: Optional[Order] = None
        self.last_error: Optional[str] = None
        self._stopped = False

    # ---- observable state ---------------------------------------------------------
    @property
    def user_id(self) -> str:
        return self.settings.user_id

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def busy(self) -> bool:
        """True while order creation is disabled."""
        return self._state is not WatchState.IDLE

    @property
    def watching(self) -> Optional[str]:
        return self._watched_order.id if self._watched_order else None

    def snapshot(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "bill_id": self.accounts.bill_id,
            "balance": self.accounts.balance,
            "orders": self.orders.all(),
            "state": self._state.value,
            "busy": self.busy,
            "watching": self.watching,
            "last_error": self.last_error,
        }

    def _set_state(self, state: WatchState) -> None:
        if state is self._state:
            return
        self.log.debug(f"[controller] {self._state.value} -> {state.value}")
        self._state = state
        self.event_bus.publish(TOPIC_WATCH, {"state": state.value, "order_id": self.watching})

    def _report(self, err: BillingError) -> None:
        self.last_error = f"{type(err).__name__}: {err}"
        self.log.warning(f"[controller] {self.last_error}")
        self.event_bus.publish(TOPIC_ERROR, {"error": type(err).__name__, "message": str(err)})

    # ---- lifecycle ----------------------------------------------------------------
    async def start(self) -> None:
        """Bootstrap the bill and load the order history concurrently."""
        results = await asyncio.gather(self.ensure_account(), self.refresh_orders(), return_exceptions=True)
        for r in results:
            if isinstance(r, BaseException) and not isinstance(r, BillingError):
                raise r
        self.log.info(
            f"[controller] started user={self.user_id} bill_id={self.accounts.bill_id} "
            f"balance={self.accounts.balance} orders={len(self.orders)}"
        )

    async def stop(self) -> None:
        # an in-flight create_order sees this and does not start a watch
        self._stopped = True
        await self.cancel_watch()
        self.log.info("[controller] stopped")

    # ---- account ------------------------------------------------------------------
    async def ensure_account(self) -> Account:
        try:
            account = await self.account_svc.ensure_account(self.user_id)
        except BillingError as e:
            self._report(e)
            raise
        self.accounts.upsert(account)
        self.event_bus.publish(TOPIC_ACCOUNT, {"bill_id": account.bill_id, "balance": account.balance})
        self.event_bus.publish(TOPIC_BALANCE, account.balance)
        return account

    async def refresh_balance(self) -> Optional[float]:
        """Read-only balance refresh; no-op until the bill is known."""
        bill_id = self.accounts.bill_id
        if not bill_id:
            self.log.debug("[controller] refresh_balance skipped: no bill yet")
            return None
        try:
            balance = await self.account_svc.get_balance(bill_id, self.user_id)
        except BillingError as e:
            self._report(e)
            raise
        self.accounts.set_balance(balance)
        self.event_bus.publish(TOPIC_BALANCE, balance)
        return balance

    async def top_up(self, amount: Any) -> Optional[float]:
        """
        Credit the bill, then re-read the balance.
        Invalid input or a missing bill is a silent no-op that returns None.
        """
        try:
            value = parse_amount(amount)
        except UserInputError as e:
            self.log.debug(f"[controller] top_up ignored: {e}")
            return None
        bill_id = self.accounts.bill_id
        if not bill_id:
            self.log.debug("[controller] top_up ignored: no bill yet")
            return None

        try:
            await self.account_svc.credit(bill_id, self.user_id, value)
        except BillingError as e:
            self._report(e)
            raise
        self.log.info(f"[controller] credited {value} to bill={bill_id}")
        return await self.refresh_balance()

    async def prompt_and_top_up(self, prompt: PromptFn) -> Optional[float]:
        """User-initiated top-up: ask for an amount, then credit it."""
        answer = prompt(TOP_UP_PROMPT, TOP_UP_DEFAULT)
        if inspect.isawaitable(answer):
            answer = await answer
        return await self.top_up(answer)

    # ---- orders -------------------------------------------------------------------
    async def refresh_orders(self) -> List[Any]:
        try:
            items = await self.order_svc.list_orders(self.user_id)
        except BillingError as e:
            self._report(e)
            raise
        self.orders.replace(items)
        self.event_bus.publish(TOPIC_ORDERS, self.orders.all())
        return self.orders.all()

    async def create_order(self) -> Order:
        """
        Place the fixed order and start watching its settlement in the background.
        Rejected with OrderInFlightError while another order is being created or settled.
        """
        if self.busy:
            raise OrderInFlightError("an order is already awaiting settlement", order_id=self.watching)
        self._set_state(WatchState.CREATING)
        try:
            order = await self.order_svc.create_order(
                self.user_id, self.settings.order_amount, self.settings.order_description,
            )
        except BillingError as e:
            self._set_state(WatchState.IDLE)
            self._report(e)
            raise
        except BaseException:
            self._set_state(WatchState.IDLE)
            raise

        if self._stopped:
            self.log.info(f"[controller] order={order.id} created after stop; not watching it")
            self._set_state(WatchState.IDLE)
            return order

        self.log.info(f"[controller] order={order.id} created amount={order.amount} status={order.status}")
        self._watched_order = order
        self._set_state(WatchState.AWAITING_SETTLEMENT)
        self._watch = asyncio.create_task(self._settle(order), name=f"settle-{order.id}")
        return order

    async def _settle(self, order: Order) -> None:
        try:
            try:
                await self.poller.wait_settled(order.id)
            except SettlementTimeout as e:
                self._report(e)
            self._set_state(WatchState.RECONCILING)
            await self._reconcile()
        finally:
            self._watched_order = None
            if self._watch is asyncio.current_task():
                self._watch = None
            self._set_state(WatchState.IDLE)

    async def _reconcile(self) -> None:
        # history first, then the balance the settlement may have debited
        try:
            await self.refresh_orders()
        except BillingError as e:
            self.log.warning(f"[controller] reconcile: order history not refreshed: {e}")
        try:
            await self.refresh_balance()
        except BillingError as e:
            self.log.warning(f"[controller] reconcile: balance not refreshed: {e}")

    async def wait_idle(self) -> None:
        """Wait for the current settlement watch, if any, to finish."""
        task = self._watch
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def cancel_watch(self) -> None:
        task = self._watch
        if task is None or task.done():
            return
        self.log.info(f"[controller] cancelling settlement watch for order={self.watching}")
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
