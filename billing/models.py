from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any

from billing.enums import OrderStatus


def to_float_or_none(x) -> Optional[float]:
    if x is None or isinstance(x, bool):
        return None
    if isinstance(x, (int, float)):
        return float(x)
    x = str(x).strip()
    if not x:
        return None
    try:
        return float(x)
    except ValueError:
        return None


@dataclass
class Account:
    bill_id: str
    balance: float = 0.0          # the create endpoint may omit it

    @classmethod
    def from_payload(cls, d: Dict[str, Any]) -> Optional["Account"]:
        bill_id = d.get("bill_id")
        if not bill_id:
            return None
        bal = to_float_or_none(d.get("balance"))
        return cls(bill_id=str(bill_id), balance=bal if bal is not None else 0.0)


@dataclass
class Order:
    id: str
    status: str
    amount: Optional[float] = None
    description: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_settled(self) -> bool:
        """Anything other than "new" is terminal."""
        return self.status != OrderStatus.NEW.value

    @classmethod
    def from_payload(cls, d: Dict[str, Any]) -> Optional["Order"]:
        oid = d.get("id", d.get("ID"))
        status = d.get("status", d.get("Status"))
        if oid is None or status is None:
            return None
        amount = to_float_or_none(d.get("amount", d.get("price", d.get("Price"))))
        return cls(
            id=str(oid),
            status=str(status),
            amount=amount,
            description=str(d.get("description", d.get("Description")) or ""),
            raw=dict(d),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out.pop("raw", None)
        return out
