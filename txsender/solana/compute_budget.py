"""
Compute unit estimation through simulation.
"""

from typing import Optional, Sequence

from loguru import logger
from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from txsender.config import (
    MAX_COMPUTE_UNIT_LIMIT,
    MAX_COMPUTE_UNIT_MARGIN_MULTIPLIER,
    MIN_COMPUTE_UNIT_MARGIN_MULTIPLIER,
    SIMULATION_MAX_ATTEMPTS,
)
from txsender.solana.errors import RpcClientError, SimulationError
from txsender.solana.models import SubmissionConfig
from txsender.solana.retry import RetryableOutcome, RetryPolicy
from txsender.solana.rpc_client import SimulationOutcome, SolanaRpc
from txsender.solana.tx_builder import compile_transaction, with_compute_unit_limit

BLOCKHASH_NOT_FOUND = "BlockhashNotFound"


def is_transient_simulation_failure(error: BaseException) -> bool:
    """Transport errors and stale-blockhash rejections are worth another attempt."""
    return isinstance(error, (RpcClientError, RetryableOutcome))


SIMULATION_RETRY_POLICY = RetryPolicy(
    max_attempts=SIMULATION_MAX_ATTEMPTS,
    is_retryable=is_transient_simulation_failure,
)


def apply_margin(units_consumed: int, margin_multiplier: float) -> int:
    """
    Scale consumed units by the margin and cap at the network maximum.

    The multiplier is clamped to [1.0, 10.0].
    """
    margin = min(max(margin_multiplier, MIN_COMPUTE_UNIT_MARGIN_MULTIPLIER), MAX_COMPUTE_UNIT_MARGIN_MULTIPLIER)
    return min(MAX_COMPUTE_UNIT_LIMIT, int(units_consumed * margin))


class ComputeBudgetEstimator:
    """
    Estimates a safe compute unit limit by simulating the transaction with
    the maximum limit declared.
    """

    def __init__(self, rpc: SolanaRpc, retry_policy: RetryPolicy = SIMULATION_RETRY_POLICY):
        """
        Initialize the estimator.

        Args:
            rpc: Shared RPC handle
            retry_policy: Policy for transient simulation failures
        """
        self.rpc = rpc
        self.retry_policy = retry_policy

    async def estimate_compute_unit_limit(
        self,
        instructions: Sequence[Instruction],
        payer: Pubkey,
        signers: Sequence[Keypair],
        lookup_tables: Sequence[AddressLookupTableAccount],
        config: SubmissionConfig,
    ) -> int:
        """
        Work out the compute unit limit for a transaction.

        Args:
            instructions: Instructions to simulate, fee and tip included
            payer: Fee payer
            signers: Transaction signers
            lookup_tables: Address lookup tables
            config: Submission options

        Returns:
            The compute unit limit; 0 means no limit instruction

        Raises:
            SimulationError: If the transaction would fail and errors are not ignored
            CompileError: If the simulated transaction cannot be compiled
            SigningError: If the simulated transaction cannot be signed
        """
        if config.disable_simulation:
            return config.default_compute_unit_limit

        async def attempt() -> Optional[int]:
            outcome = await self._simulate(instructions, payer, signers, lookup_tables, config)
            if outcome.err is None:
                return apply_margin(outcome.units_consumed or 0, config.compute_unit_margin_multiplier)

            if outcome.err == BLOCKHASH_NOT_FOUND:
                raise RetryableOutcome(BLOCKHASH_NOT_FOUND)

            if not config.ignore_simulation_error:
                raise SimulationError(outcome.err, outcome.logs)

            logger.warning(f"Simulation failed with error: {outcome.err}")
            return None

        _, cu_limit = await self.retry_policy.run(attempt, operation_name="Simulation")

        if not cu_limit:
            cu_limit = config.default_compute_unit_limit
            if cu_limit > 0:
                logger.warning(f"Simulation failed; setting the CU limit to the default value of {cu_limit}")
            else:
                logger.warning("Simulation failed; setting the CU limit to the default value")

        return cu_limit

    async def _simulate(
        self,
        instructions: Sequence[Instruction],
        payer: Pubkey,
        signers: Sequence[Keypair],
        lookup_tables: Sequence[AddressLookupTableAccount],
        config: SubmissionConfig,
    ) -> SimulationOutcome:
        """Simulate once with the maximum compute unit limit declared."""
        test_instructions = with_compute_unit_limit(instructions, MAX_COMPUTE_UNIT_LIMIT)

        if config.sig_verify_on_simulation:
            blockhash = config.blockhash or await self.rpc.get_latest_blockhash()
        else:
            blockhash = Hash.default()

        transaction = compile_transaction(payer, test_instructions, signers, lookup_tables, blockhash)
        return await self.rpc.simulate_transaction(transaction, config.sig_verify_on_simulation)
