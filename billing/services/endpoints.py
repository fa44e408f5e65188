from dataclasses import dataclass
from urllib.parse import quote


def _seg(value: str) -> str:
    return quote(str(value), safe="")


@dataclass
class Endpoints:
    # REST path templates of the account (payments) and order services
    account_create: str = "/payments/create/{user_id}"
    account_add: str = "/payments/add/{bill_id}"
    account_balance: str = "/payments/balance/{bill_id}"
    order_create: str = "/orders/create/{user_id}"
    order_status: str = "/orders/status/{order_id}"
    order_list: str = "/orders/orders/{user_id}"

    def path(self, name: str, **ids: str) -> str:
        template = getattr(self, name)
        return template.format(**{k: _seg(v) for k, v in ids.items()})
