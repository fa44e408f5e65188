from typing import Any, Callable, Dict

from utils.logger import logger

class EventBus:
    """
    Lightweight pub/sub for balance/order/watch-state updates.
    The presentation layer subscribes; the controller publishes.
    """

    def __init__(self) -> None:
        self._subs: Dict[str, list[Callable[[Any], None]]] = {}

    def subscribe(self, topic: str, handler: Callable[[Any], None]) -> None:
        """Register a synchronous callback; wrap async handlers externally."""
        self._subs.setdefault(topic, []).append(handler)

    def publish(self, topic: str, payload: Any) -> None:
        """Publish an event to subscribers (fire-and-forget)."""
        for h in list(self._subs.get(topic, [])):
            try:
                h(payload)
            except Exception:
                logger.exception(f"EventBus handler failed on topic={topic}")

# Common topics
TOPIC_BALANCE = "balance.update"
TOPIC_ACCOUNT = "account.update"
TOPIC_ORDERS = "orders.update"
TOPIC_WATCH = "watch.state"
TOPIC_ERROR = "error"
