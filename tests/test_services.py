import pytest

from infra.http_client import HttpError
from billing.errors import TransportError, MalformedResponse
from billing.services.account_service import AccountService
from billing.services.order_service import OrderService


class FakeHttp:
    """Scripted HttpPort: answers by (method, path) and records every call."""

    def __init__(self, responses):
        self._responses = responses
        self.calls = []
        self.retries = []

    async def _answer(self, method, path, params, json_body):
        self.calls.append((method, path, params, json_body))
        resp = self._responses[(method, path)]
        if isinstance(resp, Exception):
            raise resp
        return resp

    async def get(self, path, params=None):
        return await self._answer("GET", path, params, None)

    async def post(self, path, json_body=None, params=None, *, retry=True):
        self.retries.append(retry)
        return await self._answer("POST", path, params, json_body)


# ---- account service --------------------------------------------------------------

@pytest.mark.asyncio
async def test_ensure_account_parses_bill():
    http = FakeHttp({("POST", "/payments/create/u1"): {"bill_id": "b1", "balance": "42.5"}})
    account = await AccountService(http).ensure_account("u1")
    assert account.bill_id == "b1"
    assert account.balance == 42.5
    # bill creation is idempotent server-side, so it may be retried
    assert http.retries == [True]

@pytest.mark.asyncio
async def test_ensure_account_without_balance_defaults_to_zero():
    http = FakeHttp({("POST", "/payments/create/u1"): {"bill_id": "b1", "user_id": "u1", "status": "new"}})
    account = await AccountService(http).ensure_account("u1")
    assert account.balance == 0.0

@pytest.mark.asyncio
async def test_ensure_account_without_bill_id_is_malformed():
    http = FakeHttp({("POST", "/payments/create/u1"): {"error": "boom"}})
    with pytest.raises(MalformedResponse):
        await AccountService(http).ensure_account("u1")

@pytest.mark.asyncio
async def test_credit_posts_amount_with_user_query():
    http = FakeHttp({("POST", "/payments/add/b1"): {"ignored": True}})
    await AccountService(http).credit("b1", "u1", 25.0)
    assert http.calls == [("POST", "/payments/add/b1", {"user_id": "u1"}, {"amount": 25.0})]
    assert http.retries == [False]

@pytest.mark.asyncio
async def test_get_balance_reads_value():
    http = FakeHttp({("GET", "/payments/balance/b1"): {"bill_id": "b1", "balance": 75}})
    assert await AccountService(http).get_balance("b1", "u1") == 75.0
    assert http.calls[0][2] == {"user_id": "u1"}

@pytest.mark.asyncio
async def test_get_balance_missing_field_is_malformed():
    http = FakeHttp({("GET", "/payments/balance/b1"): {"error": "bill not found"}})
    with pytest.raises(MalformedResponse):
        await AccountService(http).get_balance("b1", "u1")

@pytest.mark.asyncio
async def test_account_http_error_becomes_transport_error():
    http = FakeHttp({("POST", "/payments/create/u1"): HttpError(503, "down")})
    with pytest.raises(TransportError) as ei:
        await AccountService(http).ensure_account("u1")
    assert ei.value.status == 503

@pytest.mark.asyncio
async def test_path_segments_are_escaped():
    http = FakeHttp({("GET", "/payments/balance/a%2Fb"): {"balance": 1}})
    await AccountService(http).get_balance("a/b", "u1")
    assert http.calls[0][1] == "/payments/balance/a%2Fb"


# ---- order service ----------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_order_posts_payload():
    http = FakeHttp({("POST", "/orders/create/u1"): {
        "id": "o1", "amount": 50.0, "description": "test", "status": "new"}})
    order = await OrderService(http).create_order("u1", 50.0, "test")
    assert http.calls[0][3] == {"amount": 50.0, "description": "test"}
    assert order.id == "o1"
    assert order.status == "new"
    assert not order.is_settled
    assert http.retries == [False]

@pytest.mark.asyncio
async def test_get_order_accepts_capitalised_keys():
    http = FakeHttp({("GET", "/orders/status/o1"): {"ID": "o1", "Price": 50, "Status": "finished"}})
    order = await OrderService(http).get_order("o1")
    assert order.amount == 50.0
    assert order.is_settled

@pytest.mark.asyncio
async def test_unknown_terminal_status_counts_as_settled():
    http = FakeHttp({("GET", "/orders/status/o1"): {"id": "o1", "status": "refunded"}})
    order = await OrderService(http).get_order("o1")
    assert order.is_settled

@pytest.mark.asyncio
async def test_get_order_without_status_is_malformed():
    http = FakeHttp({("GET", "/orders/status/o1"): {"error": "Order not found"}})
    with pytest.raises(MalformedResponse):
        await OrderService(http).get_order("o1")

@pytest.mark.asyncio
async def test_list_orders_returns_list_untouched():
    items = [{"id": "o2", "amount": 10, "status": "new"}, {"id": "o1", "amount": 50, "status": "canceled"}]
    http = FakeHttp({("GET", "/orders/orders/u1"): items})
    assert await OrderService(http).list_orders("u1") == items

@pytest.mark.asyncio
async def test_list_orders_non_list_becomes_empty():
    http = FakeHttp({("GET", "/orders/orders/u1"): {"message": "Failed to get orders"}})
    assert await OrderService(http).list_orders("u1") == []

@pytest.mark.asyncio
async def test_list_orders_transport_error_propagates():
    http = FakeHttp({("GET", "/orders/orders/u1"): HttpError(599, "Network error")})
    with pytest.raises(TransportError):
        await OrderService(http).list_orders("u1")
