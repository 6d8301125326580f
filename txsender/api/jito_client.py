"""
Jito block engine client.

Sends single-transaction bundles and polls their status. Every failure on
this path is raised as JitoClientError.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
from loguru import logger
from solders.signature import Signature

from txsender.config import JITO_DEFAULT_REGION, JITO_REQUEST_TIMEOUT_SECONDS
from txsender.solana.errors import BundleFailedError, BundleTimeoutError, JitoClientError

# Block engine base URLs by region
JITO_REGION_URLS = {
    "default": "https://mainnet.block-engine.jito.wtf",
    "mainnet": "https://mainnet.block-engine.jito.wtf",
    "amsterdam": "https://amsterdam.mainnet.block-engine.jito.wtf",
    "frankfurt": "https://frankfurt.mainnet.block-engine.jito.wtf",
    "london": "https://london.mainnet.block-engine.jito.wtf",
    "ny": "https://ny.mainnet.block-engine.jito.wtf",
    "slc": "https://slc.mainnet.block-engine.jito.wtf",
    "singapore": "https://singapore.mainnet.block-engine.jito.wtf",
    "tokyo": "https://tokyo.mainnet.block-engine.jito.wtf",
}

# Tip accounts for Jito validators (mainnet)
JITO_TIP_ACCOUNTS = (
    "96gYZGLnJYVFmbjzopPSU6QiEV5fGqZNyN9nmNhvrZU5",
    "HFqU5x63VTqvQss8hp11i4wVV8bD44PvwucfZ2bU7gRe",
    "Cw8CFyM9FkoMi7K7Crf6HNQqf4uEMzpKw6QNghXLvLkY",
    "ADaUMid9yfUytqMBgopwjb2DTLSokTSzL1zt6iGPaS49",
    "DfXygSm4jCyNCybVYYK6DwvWqjKee8pbDmJGcLWNDXjh",
    "ADuUkR4vqLUMWXxW9gh6D6L8pMSawimctcNZ5pGwDcEt",
    "DttWaMuVvTiduZRnguLF7jNxTgiMBZ1hyAumKUiL2KRL",
    "3AVi9Tg9Uo68tJfuvoKvqKNWKkC5wPdSSdeBnizKZ6jT",
)

CONFIRMED_BUNDLE_STATUSES = ("confirmed", "finalized")


def get_jito_api_url_by_region(region: Optional[str]) -> str:
    """Base URL for ``region``; unknown or missing regions use the default engine."""
    key = (region or JITO_DEFAULT_REGION).strip().lower()
    return JITO_REGION_URLS.get(key, JITO_REGION_URLS["default"])


def get_jito_bundles_url(region: Optional[str], uuid: str = "") -> str:
    """Bundle endpoint for ``region``, carrying ``uuid`` as a query parameter when set."""
    url = f"{get_jito_api_url_by_region(region)}/api/v1/bundles"
    if uuid:
        url = f"{url}?uuid={uuid}"
    return url


class JitoClient:
    """
    Low-level client for the Jito block engine JSON-RPC API.
    """

    def __init__(self, timeout: float = JITO_REQUEST_TIMEOUT_SECONDS):
        """
        Initialize the Jito client.

        Args:
            timeout: Request timeout in seconds
        """
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Content-Type": "application/json"},
            )
        return self._session

    async def close(self):
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _make_request(self, url: str, method: str, params: List[Any]) -> Any:
        """
        Make a JSON-RPC request to the block engine.

        Args:
            url: Bundle endpoint URL
            method: JSON-RPC method name
            params: JSON-RPC params

        Returns:
            The ``result`` member of the response

        Raises:
            JitoClientError: On transport errors, bad status codes or RPC errors
        """
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        start_time = time.monotonic()

        try:
            session = await self._get_session()
            async with session.post(url, json=payload) as response:
                body = await response.json(content_type=None)
                status_code = response.status
        except asyncio.TimeoutError as e:
            raise JitoClientError(f"{method} to {url} timed out after {self.timeout}s") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise JitoClientError(f"{method} to {url} failed: {e}") from e

        logger.debug(
            f"Received {method} response in {time.monotonic() - start_time:.2f}s",
            extra={"status_code": status_code, "url": url}
        )

        if status_code != 200:
            error = JitoClientError(f"{method} returned {status_code}: {body}", status_code=status_code)
            if error.is_rate_limited:
                logger.warning("Jito block engine rate limited {}", method, extra={"status_code": status_code, "url": url})
            raise error
        if not isinstance(body, dict):
            raise JitoClientError(f"Invalid {method} response: {body}", status_code=status_code)
        if body.get("error"):
            error = body["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise JitoClientError(f"{method} error: {message}", status_code=status_code)

        return body.get("result")

    async def send_bundle(self, transactions: Sequence[str], url: str) -> str:
        """
        Send a bundle of base58-encoded transactions.

        Returns:
            The bundle id
        """
        bundle_id = await self._make_request(url, "sendBundle", [list(transactions)])
        if not isinstance(bundle_id, str) or not bundle_id:
            raise JitoClientError(f"sendBundle returned no bundle id: {bundle_id}")

        logger.info("Jito bundle {} accepted", bundle_id, extra={"bundle_id": bundle_id, "url": url})
        return bundle_id

    async def get_bundle_statuses(self, bundle_ids: Sequence[str], url: str) -> List[Optional[Dict[str, Any]]]:
        """Statuses of landed bundles; unknown bundles come back as None."""
        result = await self._make_request(url, "getBundleStatuses", [list(bundle_ids)])
        return (result or {}).get("value") or []

    async def get_inflight_bundle_statuses(self, bundle_ids: Sequence[str], url: str) -> List[Optional[Dict[str, Any]]]:
        """Statuses of recently submitted bundles (Pending, Landed, Failed or Invalid)."""
        result = await self._make_request(url, "getInflightBundleStatuses", [list(bundle_ids)])
        return (result or {}).get("value") or []

    async def poll_bundle_statuses(self, bundle_id: str, url: str, interval: float, timeout: float) -> Signature:
        """
        Poll a bundle until it is confirmed.

        Args:
            bundle_id: Bundle to check
            url: Bundle endpoint URL
            interval: Seconds between checks
            timeout: Seconds before giving up

        Returns:
            Signature of the bundled transaction

        Raises:
            BundleFailedError: If the block engine reports the bundle as failed
            BundleTimeoutError: If no terminal status is seen in time
            JitoClientError: If a status query fails
        """
        start_time = time.monotonic()

        while True:
            await asyncio.sleep(interval)

            statuses = await self.get_bundle_statuses([bundle_id], url)
            status = next((s for s in statuses if s), None)

            if status is not None:
                err = status.get("err")
                if err and err != {"Ok": None}:
                    logger.warning(f"Jito bundle {bundle_id} failed with error: {err}")
                    raise BundleFailedError(bundle_id, err)

                if status.get("confirmation_status") in CONFIRMED_BUNDLE_STATUSES:
                    transactions = status.get("transactions") or []
                    if not transactions:
                        raise JitoClientError(f"Bundle {bundle_id} confirmed without transactions")
                    logger.debug(f"Jito bundle {bundle_id} confirmed", extra={"slot": status.get("slot")})
                    return Signature.from_string(transactions[0])
            else:
                inflight = await self.get_inflight_bundle_statuses([bundle_id], url)
                inflight_status = next((s for s in inflight if s), None)
                if inflight_status is not None and inflight_status.get("status") == "Failed":
                    logger.warning(f"Jito bundle {bundle_id} failed")
                    raise BundleFailedError(bundle_id, "Failed")

            elapsed = time.monotonic() - start_time
            if elapsed > timeout:
                break

        logger.warning(f"Jito bundle confirmation timeout for {bundle_id}")
        raise BundleTimeoutError(bundle_id, elapsed)
