import logging
from typing import Any, Optional

from infra.http_client import HttpError
from billing.errors import TransportError, MalformedResponse
from billing.models import Account, to_float_or_none
from billing.services.endpoints import Endpoints


class AccountService:
    """
    Bill creation, top-up and balance queries against the account (payments) service.
    Stateless: callers own the cached bill id and balance.
    """
    def __init__(self, http_client, endpoints: Optional[Endpoints] = None) -> None:
        self._http = http_client
        self._ep = endpoints or Endpoints()
        self.log = getattr(http_client, "log", logging.getLogger("AccountService"))

    async def ensure_account(self, user_id: str) -> Account:
        """
        POST /payments/create/{user_id}
        Idempotent on the server: returns the existing bill when the user already has one.
        """
        path = self._ep.path("account_create", user_id=user_id)
        resp = await self._call("POST", path)
        if not isinstance(resp, dict):
            raise MalformedResponse("account create returned non-object", path=path)
        account = Account.from_payload(resp)
        if account is None:
            raise MalformedResponse("account create response has no bill_id", path=path)
        return account

    async def credit(self, bill_id: str, user_id: str, amount: float) -> None:
        """POST /payments/add/{bill_id}?user_id=...; the response body is ignored.
        Not retried: a credit applied before a lost response would be applied twice."""
        path = self._ep.path("account_add", bill_id=bill_id)
        await self._call("POST", path, params={"user_id": user_id}, json_body={"amount": amount},
                         retry=False)

    async def get_balance(self, bill_id: str, user_id: str) -> float:
        """GET /payments/balance/{bill_id}?user_id=..."""
        path = self._ep.path("account_balance", bill_id=bill_id)
        resp = await self._call("GET", path, params={"user_id": user_id})
        balance = to_float_or_none(resp.get("balance")) if isinstance(resp, dict) else None
        if balance is None:
            raise MalformedResponse("balance response has no numeric balance", path=path)
        return balance

    async def _call(self, method: str, path: str, *, params=None, json_body=None, retry: bool = True) -> Any:
        try:
            if method == "GET":
                return await self._http.get(path, params=params)
            return await self._http.post(path, json_body=json_body, params=params, retry=retry)
        except HttpError as e:
            raise TransportError(f"{method} {path} failed: {e}", status=e.status) from e
