from __future__ import annotations

import logging
from typing import Protocol, Mapping, Any, Optional

from infra.http_client import HttpClient

# ========== 1) Port: services depend on this, not on HttpClient ==========
class HttpPort(Protocol):
    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any: ...
    async def post(self, path: str, json_body: Optional[Any] = None,
                   params: Optional[Mapping[str, Any]] = None, *, retry: bool = True) -> Any: ...


# ========== 2) Container: start / stop ==========
class HttpContainer:
    """
    Owns the HttpClient used by the account and order services.
    - The entrypoint holds it.
    - Services receive container.http.
    """
    def __init__(self, http: HttpClient) -> None:
        self.http = http

    @classmethod
    async def start(cls,
                    cfg: Mapping[str, Any],
                    logger: Optional[logging.Logger] = None,
                    *,
                    base_url: Optional[str] = None,
                    ) -> "HttpContainer":
        http = HttpClient(cfg, logger=logger, base_url=base_url)
        return cls(http)

    async def stop(self) -> None:
        await self.http.close()
