from dataclasses import dataclass
from typing import Any, Mapping

from infra.http_client import DEFAULT_API_BASE


@dataclass
class DashboardSettings:
    """Dashboard runtime configuration."""
    user_id: str
    api_base: str = DEFAULT_API_BASE

    poll_interval_ms: int = 2000
    max_poll_attempts: int = 150        # 0 = unbounded

    order_amount: float = 50.0
    order_description: str = "Test order"

    @property
    def poll_interval_s(self) -> float:
        return self.poll_interval_ms / 1000.0

    @classmethod
    def from_cfg(cls, cfg: Mapping[str, Any]) -> "DashboardSettings":
        try:
            dash = cfg["dashboard"]
            user_id = str(dash["user_id"]).strip()
        except KeyError as e:
            raise ValueError(f"Invalid cfg missing key: {e}") from e
        if not user_id:
            raise ValueError("Invalid cfg: dashboard.user_id is empty")

        order_cfg = dash.get("order", {}) or {}
        settings = cls(
            user_id=user_id,
            api_base=(dash.get("api_base") or DEFAULT_API_BASE).rstrip("/"),
            poll_interval_ms=int(dash.get("poll_interval_ms", 2000)),
            max_poll_attempts=int(dash.get("max_poll_attempts", 150) or 0),
            order_amount=float(order_cfg.get("amount", 50.0)),
            order_description=str(order_cfg.get("description", "Test order")),
        )
        if settings.poll_interval_ms < 0:
            raise ValueError("Invalid cfg: dashboard.poll_interval_ms must be >= 0")
        if settings.max_poll_attempts < 0:
            raise ValueError("Invalid cfg: dashboard.max_poll_attempts must be >= 0")
        if settings.order_amount <= 0:
            raise ValueError("Invalid cfg: dashboard.order.amount must be positive")
        return settings
