"""
Smart transaction sender for Solana.

Estimates priority fees and compute budgets, delivers transactions by
direct RPC broadcast or as Jito bundles, and tracks them to confirmation.
"""

from txsender.solana.models import (
    CustomFee,
    ElapsedTime,
    FeeLevel,
    JitoConfig,
    PriorityFeeConfig,
    PriorityFeeLevel,
    SubmissionConfig,
    SubmissionResult,
    TxState,
)
from txsender.solana.errors import (
    BundleFailedError,
    BundleTimeoutError,
    CompileError,
    ConfirmationTimeoutError,
    JitoClientError,
    RpcClientError,
    SigningError,
    SimulationError,
    SmartTransactionError,
    TransactionFailedError,
)
from txsender.solana.rpc_client import SolanaRpc
from txsender.solana.tx_executor import TxExecutor, send_smart_transaction
from txsender.api.jito_client import JitoClient
from txsender.events.event_system import EventSystem
from txsender.utils.log_utils import setup_logging

__version__ = "0.1.0"
