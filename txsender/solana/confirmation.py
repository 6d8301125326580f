"""
Transaction confirmation polling.
"""

import asyncio
import time

from loguru import logger
from solders.signature import Signature
from solders.transaction_status import TransactionConfirmationStatus

from txsender.solana.errors import ConfirmationTimeoutError, TransactionFailedError
from txsender.solana.rpc_client import SolanaRpc

CONFIRMED_STATUSES = (
    TransactionConfirmationStatus.Confirmed,
    TransactionConfirmationStatus.Finalized,
)


async def poll_transaction_confirmation(
    rpc: SolanaRpc,
    signature: Signature,
    interval: float,
    timeout: float,
) -> Signature:
    """
    Poll a transaction until it is confirmed.

    The first status check happens after one full interval.

    Args:
        rpc: Shared RPC handle
        signature: Transaction signature to check
        interval: Seconds between checks
        timeout: Seconds before giving up

    Returns:
        The confirmed transaction signature

    Raises:
        TransactionFailedError: If the network reports an error for the transaction
        ConfirmationTimeoutError: If no terminal status is seen in time
        RpcClientError: If a status query fails
    """
    start_time = time.monotonic()

    while True:
        await asyncio.sleep(interval)

        statuses = await rpc.get_signature_statuses([signature])
        status = statuses[0] if statuses else None

        if status is not None:
            if status.err is not None:
                logger.warning(f"Transaction {signature} failed with error: {status.err}")
                raise TransactionFailedError(signature, status.err)

            if status.confirmation_status in CONFIRMED_STATUSES:
                logger.debug(
                    f"Transaction {signature} confirmed",
                    extra={"confirmation_status": str(status.confirmation_status)}
                )
                return signature

        elapsed = time.monotonic() - start_time
        if elapsed > timeout:
            break

    logger.warning(f"Transaction confirmation timeout for {signature}")
    raise ConfirmationTimeoutError(signature, elapsed)
