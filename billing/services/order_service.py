import logging
from typing import Any, List, Optional

from infra.http_client import HttpError
from billing.errors import TransportError, MalformedResponse
from billing.models import Order
from billing.services.endpoints import Endpoints


class OrderService:
    """
    REST order placement and queries against the order service.
    """

    def __init__(self, http_client, endpoints: Optional[Endpoints] = None) -> None:
        self._http = http_client
        self._ep = endpoints or Endpoints()
        self.log = getattr(http_client, "log", logging.getLogger("OrderService"))

    async def create_order(self, user_id: str, amount: float, description: str) -> Order:
        """POST /orders/create/{user_id} → the created order (status "new"). Never retried."""
        path = self._ep.path("order_create", user_id=user_id)
        resp = await self._call("POST", path, json_body={"amount": amount, "description": description},
                                 retry=False)
        order = Order.from_payload(resp) if isinstance(resp, dict) else None
        if order is None:
            raise MalformedResponse("order create response has no id/status", path=path)
        return order

    async def get_order(self, order_id: str) -> Order:
        """GET /orders/status/{order_id}"""
        path = self._ep.path("order_status", order_id=order_id)
        resp = await self._call("GET", path)
        order = Order.from_payload(resp) if isinstance(resp, dict) else None
        if order is None:
            raise MalformedResponse("order status response has no id/status", path=path)
        return order

    async def list_orders(self, user_id: str) -> List[Any]:
        """
        GET /orders/orders/{user_id}
        Returns the list exactly as served; anything that is not a list becomes [].
        """
        path = self._ep.path("order_list", user_id=user_id)
        resp = await self._call("GET", path)
        if not isinstance(resp, list):
            self.log.warning(f"order list for user={user_id} is not a list: {str(resp)[:128]}")
            return []
        return resp

    async def _call(self, method: str, path: str, *, json_body=None, retry: bool = True) -> Any:
        try:
            if method == "GET":
                return await self._http.get(path)
            return await self._http.post(path, json_body=json_body, retry=retry)
        except HttpError as e:
            raise TransportError(f"{method} {path} failed: {e}", status=e.status) from e
