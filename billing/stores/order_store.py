from typing import Any, List

class OrderStore:
    """
    In-memory order history, replaced wholesale on every successful fetch.
    Items are kept exactly as the order service returned them.
    """

    def __init__(self) -> None:
        self._items: List[Any] = []

    def replace(self, items: List[Any]) -> None:
        self._items = list(items)

    def all(self) -> List[Any]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
