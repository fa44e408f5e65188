from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Any, Optional

from billing.app.controller import ReconciliationController
from billing.errors import OrderInFlightError, TransportError, MalformedResponse


def build_app(controller: ReconciliationController) -> FastAPI:
    app = FastAPI(title="Billing Dashboard")

    class TopUpReq(BaseModel):
        # left untyped: bad input is a no-op, not a 422
        amount: Optional[Any] = None

    def _upstream(e: Exception) -> HTTPException:
        return HTTPException(status_code=502, detail=str(e))

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    @app.get("/state")
    async def get_state():
        return controller.snapshot()

    @app.post("/balance/topup")
    async def top_up(req: TopUpReq):
        try:
            balance = await controller.top_up(req.amount)
        except (TransportError, MalformedResponse) as e:
            raise _upstream(e)
        if balance is None:
            return {"ok": False, "skipped": True, "balance": controller.accounts.balance}
        return {"ok": True, "balance": balance}

    @app.post("/balance/refresh")
    async def refresh_balance():
        try:
            balance = await controller.refresh_balance()
        except (TransportError, MalformedResponse) as e:
            raise _upstream(e)
        return {"ok": balance is not None, "balance": controller.accounts.balance}

    @app.post("/orders", status_code=201)
    async def create_order():
        try:
            order = await controller.create_order()
        except OrderInFlightError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except (TransportError, MalformedResponse) as e:
            raise _upstream(e)
        return {"ok": True, "order": order.to_dict()}

    @app.post("/orders/refresh")
    async def refresh_orders():
        try:
            orders = await controller.refresh_orders()
        except TransportError as e:
            raise _upstream(e)
        return {"ok": True, "orders": orders}

    return app
