"""
Delivery strategies for signed transactions.

A submission is delivered either by direct RPC broadcast or as a
single-transaction Jito bundle. The strategy is chosen once per
submission from its configuration.
"""

from dataclasses import dataclass
from typing import Optional

import base58
from loguru import logger
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from txsender.api.jito_client import JitoClient, get_jito_bundles_url
from txsender.solana.confirmation import poll_transaction_confirmation
from txsender.solana.models import JitoConfig, SubmissionConfig
from txsender.solana.rpc_client import SolanaRpc


@dataclass(frozen=True)
class DeliveryReceipt:
    """What the network or block engine handed back on acceptance."""
    signature: Optional[Signature] = None
    bundle_id: Optional[str] = None


class DeliveryStrategy:
    """Base class for delivery strategies."""

    async def send(self, transaction: VersionedTransaction) -> DeliveryReceipt:
        raise NotImplementedError

    async def await_confirmation(self, receipt: DeliveryReceipt, interval: float, timeout: float) -> Signature:
        raise NotImplementedError


class DirectDelivery(DeliveryStrategy):
    """
    Broadcast through the RPC node exactly once, preflight disabled.
    """

    def __init__(self, rpc: SolanaRpc):
        self.rpc = rpc

    async def send(self, transaction: VersionedTransaction) -> DeliveryReceipt:
        signature = await self.rpc.send_transaction(transaction)
        logger.info(f"Transaction {signature} sent", extra={"signature": str(signature)})
        return DeliveryReceipt(signature=signature)

    async def await_confirmation(self, receipt: DeliveryReceipt, interval: float, timeout: float) -> Signature:
        return await poll_transaction_confirmation(self.rpc, receipt.signature, interval, timeout)


class JitoDelivery(DeliveryStrategy):
    """
    Send the transaction as a single-transaction Jito bundle and resolve the
    bundle to the landed transaction signature.
    """

    def __init__(self, jito_client: JitoClient, jito_config: JitoConfig):
        self.jito_client = jito_client
        self.url = get_jito_bundles_url(jito_config.region, jito_config.uuid)

    async def send(self, transaction: VersionedTransaction) -> DeliveryReceipt:
        transaction_base58 = base58.b58encode(bytes(transaction)).decode("utf-8")
        bundle_id = await self.jito_client.send_bundle([transaction_base58], self.url)
        return DeliveryReceipt(bundle_id=bundle_id)

    async def await_confirmation(self, receipt: DeliveryReceipt, interval: float, timeout: float) -> Signature:
        return await self.jito_client.poll_bundle_statuses(receipt.bundle_id, self.url, interval, timeout)


def select_delivery(config: SubmissionConfig, rpc: SolanaRpc, jito_client: JitoClient) -> DeliveryStrategy:
    """Pick the delivery strategy for a submission."""
    if config.jito is not None:
        return JitoDelivery(jito_client, config.jito)
    return DirectDelivery(rpc)
