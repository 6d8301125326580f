"""
Shared fakes and fixtures for the transaction sender tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, List, Optional

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction_status import TransactionConfirmationStatus

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from txsender.solana.rpc_client import PrioritizationFee, SimulationOutcome

COMPUTE_BUDGET_PROGRAM_ID = Pubkey.from_string("ComputeBudget111111111111111111111111111111")
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")


def fees_from_values(values: List[int], start_slot: int = 1000) -> List[PrioritizationFee]:
    """One observation per slot, newest slot last."""
    return [PrioritizationFee(slot=start_slot + i, prioritization_fee=v) for i, v in enumerate(values)]


def status(err: Any = None, confirmation_status=TransactionConfirmationStatus.Confirmed):
    return SimpleNamespace(err=err, confirmation_status=confirmation_status)


def decode_instructions(transaction):
    """(program id, data) for every compiled instruction, in order."""
    keys = transaction.message.account_keys
    return [(keys[ix.program_id_index], bytes(ix.data)) for ix in transaction.message.instructions]


class FakeRpc:
    """
    In-memory stand-in for SolanaRpc.

    ``simulations`` and ``statuses`` are consumed in order; the last entry
    repeats. Exceptions in either list are raised instead of returned.
    """

    def __init__(
        self,
        fees: Optional[List[PrioritizationFee]] = None,
        simulations: Optional[List[Any]] = None,
        statuses: Optional[List[Any]] = None,
        blockhash: Optional[Hash] = None,
    ):
        self.fees = fees or []
        self.simulations = list(simulations or [SimulationOutcome(units_consumed=5000)])
        self.statuses = list(statuses or [status()])
        self.blockhash = blockhash or Hash.new_unique()
        self.calls: List[str] = []
        self.simulated: List[Any] = []
        self.sent: List[Any] = []

    def _next(self, queue: List[Any]) -> Any:
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item

    async def get_recent_prioritization_fees(self, accounts):
        self.calls.append("get_recent_prioritization_fees")
        return list(self.fees)

    async def get_latest_blockhash(self):
        self.calls.append("get_latest_blockhash")
        return self.blockhash

    async def simulate_transaction(self, tx, sig_verify):
        self.calls.append("simulate_transaction")
        self.simulated.append((tx, sig_verify))
        return self._next(self.simulations)

    async def send_transaction(self, tx):
        self.calls.append("send_transaction")
        self.sent.append(tx)
        return tx.signatures[0]

    async def get_signature_statuses(self, signatures):
        self.calls.append("get_signature_statuses")
        return [self._next(self.statuses)]

    async def close(self):
        pass


class FakeJitoClient:
    """In-memory stand-in for JitoClient."""

    def __init__(self, bundle_id: str = "bundle-1", signature=None, error: Optional[Exception] = None):
        self.bundle_id = bundle_id
        self.signature = signature
        self.error = error
        self.sent: List[tuple] = []
        self.polled: List[tuple] = []

    async def send_bundle(self, transactions, url):
        if self.error:
            raise self.error
        self.sent.append((list(transactions), url))
        return self.bundle_id

    async def poll_bundle_statuses(self, bundle_id, url, interval, timeout):
        self.polled.append((bundle_id, url, interval, timeout))
        return self.signature

    async def close(self):
        pass


@pytest.fixture
def payer():
    return Keypair()


@pytest.fixture
def recipient():
    return Keypair().pubkey()


@pytest.fixture
def transfer_ix(payer, recipient):
    return transfer(TransferParams(from_pubkey=payer.pubkey(), to_pubkey=recipient, lamports=100))
