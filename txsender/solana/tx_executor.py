"""
Smart transaction execution for Solana.
"""

import random
import time
from typing import Optional, Sequence

from loguru import logger
from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from txsender.api.jito_client import JitoClient
from txsender.events.event_system import (
    Event,
    EventSystem,
    TransactionBuiltEvent,
    TransactionConfirmedEvent,
    TransactionFailedEvent,
    TransactionSentEvent,
    TransactionTimedOutEvent,
)
from txsender.solana.compute_budget import ComputeBudgetEstimator
from txsender.solana.delivery import select_delivery
from txsender.solana.errors import BundleTimeoutError, ConfirmationTimeoutError, SmartTransactionError
from txsender.solana.fee_oracle import FeeOracle
from txsender.solana.models import ElapsedTime, PriorityFeeLevel, SubmissionConfig, SubmissionResult
from txsender.solana.rpc_client import SolanaRpc
from txsender.solana.tx_builder import (
    build_instructions,
    compile_transaction,
    instruction_accounts,
    with_compute_unit_limit,
)


class TxExecutor:
    """
    Prepares, sends and confirms Solana transactions.

    One executor can serve many concurrent submissions: it only holds
    read-only client handles.
    """

    def __init__(
        self,
        rpc: SolanaRpc,
        jito_client: Optional[JitoClient] = None,
        event_system: Optional[EventSystem] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the transaction executor.

        Args:
            rpc: Shared RPC handle
            jito_client: Jito client for bundle delivery; created on demand
            event_system: Receives lifecycle events when set
            rng: Random source for picking Jito tip accounts
        """
        self.rpc = rpc
        self.jito_client = jito_client or JitoClient()
        self.event_system = event_system
        self.rng = rng
        self.fee_oracle = FeeOracle(rpc)
        self.compute_budget = ComputeBudgetEstimator(rpc)

    async def close(self):
        """Close the Jito HTTP session."""
        await self.jito_client.close()

    async def __aenter__(self) -> "TxExecutor":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _publish(self, event: Event):
        if self.event_system is not None:
            await self.event_system.publish(event)

    async def resolve_priority_fee(self, instructions: Sequence[Instruction], config: SubmissionConfig) -> int:
        """
        Work out the priority fee for a submission.

        Jito bundles never pay a priority fee.

        Returns:
            Fee in micro-lamports per compute unit, clamped to the configured range
        """
        fee_config = config.priority_fee
        if fee_config is None or config.jito is not None:
            return 0
        if fee_config.fee_level == PriorityFeeLevel.NONE:
            return 0

        priority_fee = await self.fee_oracle.get_priority_fee_estimate(
            instruction_accounts(instructions), fee_config.fee_level
        )

        if fee_config.fee_min is not None:
            priority_fee = max(priority_fee, fee_config.fee_min)
        if fee_config.fee_max is not None:
            priority_fee = min(priority_fee, fee_config.fee_max)

        return priority_fee

    async def send_smart_transaction(
        self,
        signers: Sequence[Keypair],
        payer: Pubkey,
        instructions: Sequence[Instruction],
        lookup_tables: Optional[Sequence[AddressLookupTableAccount]] = None,
        config: Optional[SubmissionConfig] = None,
    ) -> SubmissionResult:
        """
        Prepare, send and optionally confirm a transaction.

        Args:
            signers: Keypairs signing the transaction
            payer: Fee payer
            instructions: Caller instructions
            lookup_tables: Address lookup tables for the v0 message
            config: Submission options

        Returns:
            SubmissionResult with signature, applied fee, bundle id and timings

        Raises:
            CompileError, SigningError, SimulationError, RpcClientError, JitoClientError
        """
        config = config or SubmissionConfig()
        lookup_tables = list(lookup_tables or [])
        start = time.monotonic()
        elapsed_time = ElapsedTime()

        priority_fee = await self.resolve_priority_fee(instructions, config)
        all_instructions = build_instructions(instructions, payer, priority_fee, config.jito, self.rng)

        cu_limit = await self.compute_budget.estimate_compute_unit_limit(
            all_instructions, payer, signers, lookup_tables, config
        )
        all_instructions = with_compute_unit_limit(all_instructions, cu_limit)

        blockhash = config.blockhash or await self.rpc.get_latest_blockhash()
        transaction = compile_transaction(payer, all_instructions, signers, lookup_tables, blockhash)

        elapsed_time.prepare_and_simulate = time.monotonic() - start

        logger.info(
            f"Prepared transaction: priority fee {priority_fee}, CU limit {cu_limit}",
            extra={"priority_fee": priority_fee, "cu_limit": cu_limit, "jito": config.jito is not None}
        )
        await self._publish(TransactionBuiltEvent(str(transaction.signatures[0])))

        delivery = select_delivery(config, self.rpc, self.jito_client)
        try:
            receipt = await delivery.send(transaction)
        except SmartTransactionError as e:
            await self._publish(TransactionFailedEvent(str(e)))
            raise

        elapsed_time.send = time.monotonic() - start

        sent_signature = str(receipt.signature) if receipt.signature else None
        await self._publish(TransactionSentEvent(signature=sent_signature, bundle_id=receipt.bundle_id))

        signature = receipt.signature
        if config.wait_for_confirmation:
            try:
                signature = await delivery.await_confirmation(
                    receipt, config.polling_interval, config.transaction_timeout
                )
            except (ConfirmationTimeoutError, BundleTimeoutError) as e:
                await self._publish(TransactionTimedOutEvent(str(e), sent_signature, receipt.bundle_id))
                raise
            except SmartTransactionError as e:
                await self._publish(TransactionFailedEvent(str(e), sent_signature, receipt.bundle_id))
                raise

            elapsed_time.confirm = time.monotonic() - start
            await self._publish(TransactionConfirmedEvent(str(signature), receipt.bundle_id))

        logger.info(
            f"Transaction {signature} done ({elapsed_time})",
            extra={"signature": str(signature), "bundle_id": receipt.bundle_id}
        )

        return SubmissionResult(
            signature=signature,
            priority_fee=priority_fee,
            jito_bundle_id=receipt.bundle_id,
            elapsed_time=elapsed_time,
        )


async def send_smart_transaction(
    rpc: SolanaRpc,
    signers: Sequence[Keypair],
    payer: Pubkey,
    instructions: Sequence[Instruction],
    lookup_tables: Optional[Sequence[AddressLookupTableAccount]] = None,
    config: Optional[SubmissionConfig] = None,
) -> SubmissionResult:
    """One-shot submission with a throwaway executor."""
    async with TxExecutor(rpc) as executor:
        return await executor.send_smart_transaction(signers, payer, instructions, lookup_tables, config)
