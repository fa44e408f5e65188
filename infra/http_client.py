# infra/http_client.py
from __future__ import annotations

import aiohttp
import asyncio
import json
import random
from typing import Any, Mapping, Optional
from urllib.parse import urlencode
import logging
from utils.logger import logger

JSON_SEPARATORS = (",", ":")
DEFAULT_API_BASE = "http://localhost:8080"


class HttpError(Exception):
    def __init__(self, status: int, message: str, payload: Optional[dict] = None):
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.message = message
        self.payload = payload or {}


def _json_dumps_compact(obj: Any) -> str:
    return json.dumps(obj, separators=JSON_SEPARATORS, ensure_ascii=False)

def _build_query(params: Optional[Mapping[str, Any]]) -> str:
    if not params:
        return ""
    return "?" + urlencode(params, doseq=True, safe=":/")


class HttpClient:
    def __init__(self,
                 cfg: Mapping[str, Any],
                 logger: Optional[logging.Logger] = None,
                 *,
                 base_url: Optional[str] = None,
                 timeout_ms: Optional[int] = None,
                 session: Optional[aiohttp.ClientSession] = None,
                 ) -> None:
        self.cfg = cfg
        self.log = logger or logging.getLogger("HttpClient")
        self.session = session
        self._owned_session = session is None

        dash_cfg = cfg.get("dashboard", {}) or {}
        self.base_url = (base_url or dash_cfg.get("api_base") or DEFAULT_API_BASE).rstrip("/")

        # timeouts & retries
        timeouts_cfg = cfg.get("timeouts", {}) or {}
        retries_cfg = cfg.get("retries", {}) or {}
        self.timeout_ms = int(timeout_ms or timeouts_cfg.get("rest_ms", 5000))
        self.max_attempts = max(1, int(retries_cfg.get("rest_max_attempts", 3)))
        self.backoff_ms = int(retries_cfg.get("backoff_ms", 200))

        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout_ms / 1000)
            self.session = aiohttp.ClientSession(timeout=timeout, raise_for_status=False, trust_env=True)

        self.log.debug(
            f"HttpClient init base_url={self.base_url} timeout_ms={self.timeout_ms} max_attempts={self.max_attempts}"
        )

    # ---- async context manager ----------------------------------------------------
    async def __aenter__(self) -> "HttpClient":
        if self._owned_session and (self.session is None or self.session.closed):
            timeout = aiohttp.ClientTimeout(total=self.timeout_ms / 1000.0)
            self.session = aiohttp.ClientSession(timeout=timeout, raise_for_status=False, trust_env=True)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owned_session and self.session is not None and not self.session.closed:
            await self.session.close()

    async def request(
            self,
            method: str,
            path: str,
            *,
            params: Optional[Mapping[str, Any]] = None,
            json_body: Optional[Any] = None,
            headers: Optional[Mapping[str, str]] = None,
            timeout_ms: Optional[int] = None,
            retry: bool = True,
        ) -> Any:
        """
        Single entry point for every call to the account and order services.
        - method: "GET" | "POST" | "DELETE" | "PUT"
        - path: absolute path, e.g. "/orders/status/<id>"
        - params: querystring
        - json_body: JSON request body
        - timeout_ms: overrides the session timeout
        - retry: exponential backoff on 5xx / 429 / network errors

        Returns the decoded JSON document (dict or list). A body that is not JSON comes
        back as {"raw": text} so callers can decide whether the shape is acceptable.
        """
        assert path.startswith("/"), "path must start with /"
        method = method.upper()
        query = _build_query(params)
        url = self.base_url + path + query
        body_str = _json_dumps_compact(json_body) if json_body is not None else ""
        req_headers = {
            "Content-Type": "application/json", "Accept": "application/json"
        }
        if headers:
            req_headers.update(headers)

        req_kwargs: dict = {}
        if timeout_ms:
            req_kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout_ms / 1000.0)

        attempt = 0
        while True:
            attempt += 1
            try:
                async with self.session.request(
                    method,
                    url,
                    data=body_str if body_str else None,
                    headers=req_headers,
                    **req_kwargs,
                ) as resp:
                    text = await resp.text()
                    status = resp.status
                    if status >= 400:
                        if retry and (status >= 500 or status == 429) and attempt < self.max_attempts:
                            await self._sleep_backoff(attempt)
                            continue
                        raise HttpError(status, text[:256])

                    try:
                        return json.loads(text) if text else {}
                    except json.JSONDecodeError:
                        return {"raw": text}
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if retry and attempt < self.max_attempts:
                    await self._sleep_backoff(attempt)
                    logger.warning(f"Network error: {e} when requesting {url}, retrying...")
                    continue
                raise HttpError(599, f"Network error: {e}") from e
            except HttpError:
                raise
            except Exception as e:
                raise HttpError(599, f"Unexpected error: {e}") from e

    async def _sleep_backoff(self, attempt: int) -> None:
        base = self.backoff_ms * (2 ** (attempt - 1))
        jitter = random.randint(0, self.backoff_ms)
        await asyncio.sleep((base + jitter) / 1000.0)

    # ---- convenience wrappers -----------------------------------------------------
    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self,
                   path: str,
                   json_body: Optional[Any] = None,
                   params: Optional[Mapping[str, Any]] = None,
                   *,
                   retry: bool = True) -> Any:
        """retry=False for commands the server must not see twice (credits, order creation)."""
        return await self.request("POST", path, params=params, json_body=json_body, retry=retry)
