"""
Async RPC access for the smart transaction pipeline.

Wraps the solana-py AsyncClient and exposes only the calls the pipeline
needs. Every transport or node failure surfaces as RpcClientError.
"""

import asyncio
import base64
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException
from solana.rpc.models import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from txsender.config import SOLANA_RPC_URL
from txsender.solana.errors import RpcClientError


class PrioritizationFee(BaseModel):
    """A single recent prioritization fee observation."""
    slot: int
    prioritization_fee: int = Field(alias="prioritizationFee")

    model_config = ConfigDict(populate_by_name=True)


class SimulationOutcome(BaseModel):
    """The parts of a simulateTransaction result the pipeline uses."""
    err: Optional[Any] = None
    units_consumed: Optional[int] = Field(default=None, alias="unitsConsumed")
    logs: Optional[List[str]] = None

    model_config = ConfigDict(populate_by_name=True)


class SolanaRpc:
    """
    Read-only RPC handle shared by concurrent submissions.
    """

    def __init__(self, rpc_url: str = SOLANA_RPC_URL, timeout: float = 10):
        """
        Initialize the RPC handle.

        Args:
            rpc_url: Solana JSON-RPC endpoint
            timeout: Request timeout in seconds
        """
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.client = AsyncClient(rpc_url, timeout=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session for raw JSON-RPC calls."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Content-Type": "application/json"},
            )
        return self._session

    async def close(self):
        """Close the underlying connections."""
        await self.client.close()
        if self._session and not self._session.closed:
            await self._session.close()

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """
        Make a raw JSON-RPC call for requests solana-py does not expose
        with the options we need.
        """
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            session = await self._get_session()
            async with session.post(self.rpc_url, json=payload) as response:
                body = await response.json(content_type=None)
                if response.status >= 400:
                    raise RpcClientError(f"RPC call {method} returned {response.status}: {body}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RpcClientError(f"RPC call {method} failed: {e}") from e

        if not isinstance(body, dict):
            raise RpcClientError(f"Invalid RPC response for {method}: {body}")
        if body.get("error"):
            raise RpcClientError(f"RPC error for {method}: {body['error']}")
        return body.get("result")

    async def get_recent_prioritization_fees(self, accounts: Sequence[Pubkey]) -> List[PrioritizationFee]:
        """Recent per-slot prioritization fees for transactions locking ``accounts``."""
        result = await self._rpc_call("getRecentPrioritizationFees", [[str(a) for a in accounts]])
        if not isinstance(result, list):
            raise RpcClientError(f"Unexpected getRecentPrioritizationFees response: {result}")
        return [PrioritizationFee.model_validate(item) for item in result]

    async def get_latest_blockhash(self) -> Hash:
        try:
            resp = await self.client.get_latest_blockhash(Confirmed)
        except (SolanaRpcException, RPCException) as e:
            raise RpcClientError(f"getLatestBlockhash failed: {e}") from e
        return resp.value.blockhash

    async def simulate_transaction(self, tx: VersionedTransaction, sig_verify: bool) -> SimulationOutcome:
        """
        Simulate ``tx``. Without signature verification the node is asked
        to replace the blockhash, so a default one is acceptable.
        """
        config: Dict[str, Any] = {
            "sigVerify": sig_verify,
            "replaceRecentBlockhash": not sig_verify,
            "commitment": "confirmed",
            "encoding": "base64",
        }
        encoded = base64.b64encode(bytes(tx)).decode("utf-8")
        result = await self._rpc_call("simulateTransaction", [encoded, config])
        if not isinstance(result, dict) or not isinstance(result.get("value"), dict):
            raise RpcClientError(f"Unexpected simulateTransaction response: {result}")
        return SimulationOutcome.model_validate(result["value"])

    async def send_transaction(self, tx: VersionedTransaction) -> Signature:
        """Broadcast once: no preflight, no node-side retries."""
        opts = TxOpts(skip_preflight=True, preflight_commitment=Confirmed, max_retries=0)
        try:
            resp = await self.client.send_raw_transaction(bytes(tx), opts=opts)
        except (SolanaRpcException, RPCException) as e:
            raise RpcClientError(f"sendTransaction failed: {e}") from e
        return resp.value

    async def get_signature_statuses(self, signatures: Sequence[Signature]) -> List[Optional[Any]]:
        try:
            resp = await self.client.get_signature_statuses(list(signatures))
        except (SolanaRpcException, RPCException) as e:
            raise RpcClientError(f"getSignatureStatuses failed: {e}") from e

        logger.debug(f"Signature statuses: {resp.value}")
        return list(resp.value)
