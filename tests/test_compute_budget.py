"""
Tests for txsender/solana/compute_budget.py and txsender/solana/retry.py
"""

import pytest
from solders.hash import Hash

from txsender.config import MAX_COMPUTE_UNIT_LIMIT
from txsender.solana.compute_budget import ComputeBudgetEstimator, apply_margin
from txsender.solana.errors import RpcClientError, SimulationError
from txsender.solana.models import SubmissionConfig
from txsender.solana.retry import RetryPolicy
from txsender.solana.rpc_client import SimulationOutcome

from conftest import FakeRpc

INSTRUCTION_ERROR = {"InstructionError": [0, {"Custom": 1}]}


async def estimate(rpc, payer, transfer_ix, **config_kwargs):
    config = SubmissionConfig(**config_kwargs)
    return await ComputeBudgetEstimator(rpc).estimate_compute_unit_limit(
        [transfer_ix], payer.pubkey(), [payer], [], config
    )


class TestApplyMargin:
    """Margin arithmetic."""

    def test_default_margin(self):
        assert apply_margin(5000, 1.15) == 5750

    def test_margin_clamped_low(self):
        assert apply_margin(5000, 0.5) == 5000

    def test_margin_clamped_high(self):
        assert apply_margin(5000, 50.0) == 50000

    def test_capped_at_network_maximum(self):
        assert apply_margin(1_300_000, 2.0) == MAX_COMPUTE_UNIT_LIMIT


class TestComputeBudgetEstimator:
    """Simulation-driven compute unit limits."""

    async def test_successful_simulation(self, payer, transfer_ix):
        rpc = FakeRpc(simulations=[SimulationOutcome(units_consumed=5000)])
        assert await estimate(rpc, payer, transfer_ix) == 5750
        assert rpc.calls.count("simulate_transaction") == 1

    async def test_simulation_disabled_uses_fallback(self, payer, transfer_ix):
        rpc = FakeRpc()
        assert await estimate(rpc, payer, transfer_ix, disable_simulation=True, default_compute_unit_limit=300_000) == 300_000
        assert rpc.calls == []

    async def test_stale_blockhash_is_retried(self, payer, transfer_ix):
        rpc = FakeRpc(simulations=[
            SimulationOutcome(err="BlockhashNotFound"),
            SimulationOutcome(err="BlockhashNotFound"),
            SimulationOutcome(units_consumed=10_000),
        ])
        assert await estimate(rpc, payer, transfer_ix, compute_unit_margin_multiplier=1.0) == 10_000
        assert rpc.calls.count("simulate_transaction") == 3

    async def test_transport_errors_are_retried(self, payer, transfer_ix):
        rpc = FakeRpc(simulations=[RpcClientError("timeout"), SimulationOutcome(units_consumed=2000)])
        assert await estimate(rpc, payer, transfer_ix, compute_unit_margin_multiplier=1.5) == 3000

    async def test_exhausted_retries_fall_back(self, payer, transfer_ix):
        rpc = FakeRpc(simulations=[RpcClientError("timeout")])
        assert await estimate(rpc, payer, transfer_ix, default_compute_unit_limit=200_000) == 200_000
        assert rpc.calls.count("simulate_transaction") == 5

    async def test_exhausted_retries_with_zero_fallback(self, payer, transfer_ix):
        rpc = FakeRpc(simulations=[SimulationOutcome(err="BlockhashNotFound")])
        assert await estimate(rpc, payer, transfer_ix, default_compute_unit_limit=0) == 0

    async def test_program_error_is_fatal(self, payer, transfer_ix):
        rpc = FakeRpc(simulations=[SimulationOutcome(err=INSTRUCTION_ERROR, logs=["Program failed"])])
        with pytest.raises(SimulationError) as exc_info:
            await estimate(rpc, payer, transfer_ix)
        assert exc_info.value.err == INSTRUCTION_ERROR
        assert exc_info.value.logs == ["Program failed"]
        assert rpc.calls.count("simulate_transaction") == 1

    async def test_program_error_ignored_uses_fallback(self, payer, transfer_ix):
        rpc = FakeRpc(simulations=[SimulationOutcome(err=INSTRUCTION_ERROR)])
        limit = await estimate(rpc, payer, transfer_ix, ignore_simulation_error=True, default_compute_unit_limit=123_456)
        assert limit == 123_456
        assert rpc.calls.count("simulate_transaction") == 1

    async def test_zero_units_consumed_falls_back(self, payer, transfer_ix):
        rpc = FakeRpc(simulations=[SimulationOutcome(units_consumed=0)])
        assert await estimate(rpc, payer, transfer_ix, default_compute_unit_limit=77_000) == 77_000

    async def test_limit_never_exceeds_network_maximum(self, payer, transfer_ix):
        rpc = FakeRpc(simulations=[SimulationOutcome(units_consumed=1_399_999)])
        assert await estimate(rpc, payer, transfer_ix, compute_unit_margin_multiplier=10.0) == MAX_COMPUTE_UNIT_LIMIT

    async def test_without_sig_verify_uses_default_blockhash(self, payer, transfer_ix):
        rpc = FakeRpc()
        await estimate(rpc, payer, transfer_ix, sig_verify_on_simulation=False)
        assert "get_latest_blockhash" not in rpc.calls
        tx, sig_verify = rpc.simulated[0]
        assert sig_verify is False
        assert tx.message.recent_blockhash == Hash.default()

    async def test_pinned_blockhash_is_used(self, payer, transfer_ix):
        pinned = Hash.new_unique()
        rpc = FakeRpc()
        await estimate(rpc, payer, transfer_ix, blockhash=pinned)
        assert "get_latest_blockhash" not in rpc.calls
        assert rpc.simulated[0][0].message.recent_blockhash == pinned

    async def test_simulated_transaction_declares_maximum_limit(self, payer, transfer_ix):
        rpc = FakeRpc()
        await estimate(rpc, payer, transfer_ix)
        tx = rpc.simulated[0][0]
        assert len(tx.message.instructions) == 2


class TestRetryPolicy:
    """Bounded retry behaviour."""

    async def test_non_retryable_error_propagates(self):
        policy = RetryPolicy(max_attempts=5, is_retryable=lambda e: isinstance(e, RpcClientError))
        attempts = []

        async def attempt():
            attempts.append(1)
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await policy.run(attempt)
        assert len(attempts) == 1

    async def test_reports_exhaustion(self):
        policy = RetryPolicy(max_attempts=3, is_retryable=lambda e: True)
        attempts = []

        async def attempt():
            attempts.append(1)
            raise RpcClientError("down")

        assert await policy.run(attempt) == (False, None)
        assert len(attempts) == 3


class TestRetryLogging:
    """Retried failures whose text contains format braces."""

    async def test_rpc_error_body_in_message_is_retried(self, payer, transfer_ix):
        rpc = FakeRpc(simulations=[
            RpcClientError("RPC error for simulateTransaction: {'code': -32005, 'message': 'Node is behind'}"),
            SimulationOutcome(units_consumed=2000),
        ])
        assert await estimate(rpc, payer, transfer_ix, compute_unit_margin_multiplier=1.0) == 2000
        assert rpc.calls.count("simulate_transaction") == 2

    async def test_policy_logs_braced_errors(self):
        policy = RetryPolicy(max_attempts=2, is_retryable=lambda e: True)

        async def attempt():
            raise RpcClientError("{unbalanced {'code': 1}")

        assert await policy.run(attempt, operation_name="Simulation {0}") == (False, None)
