"""
Solana integration for the smart transaction sender.

This package contains modules for fee estimation, compute budget
estimation, transaction assembly, delivery and confirmation.
"""

from txsender.solana.models import (
    PriorityFeeLevel,
    CustomFee,
    PriorityFeeConfig,
    JitoConfig,
    SubmissionConfig,
    SubmissionResult,
    ElapsedTime,
    TxState,
)
from txsender.solana.fee_oracle import FeeOracle, calculate_percentiles
from txsender.solana.compute_budget import ComputeBudgetEstimator
from txsender.solana.delivery import DirectDelivery, JitoDelivery, select_delivery
from txsender.solana.confirmation import poll_transaction_confirmation
from txsender.solana.tx_executor import TxExecutor
