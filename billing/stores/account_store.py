from typing import Optional
from ..models import Account

class AccountStore:
    """
    In-memory mirror of the user's bill: id and last balance read from the account service.
    """

    def __init__(self) -> None:
        self._bill_id: Optional[str] = None
        self._balance: float = 0.0

    @property
    def bill_id(self) -> Optional[str]:
        return self._bill_id

    @property
    def balance(self) -> float:
        return self._balance

    def upsert(self, account: Account) -> None:
        self._bill_id = account.bill_id
        self._balance = account.balance

    def set_balance(self, balance: float) -> None:
        """Replace the cached balance with a value read from the service."""
        self._balance = balance
