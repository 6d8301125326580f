"""
Priority fee estimation for Solana.
"""

from typing import Dict, List, Sequence

from loguru import logger
from solders.pubkey import Pubkey

from txsender.config import FEE_CHUNK_SIZE, FEE_MAX_CHUNKS, FEE_PERCENTILES
from txsender.solana.models import CustomFee, FeeLevel, PriorityFeeLevel
from txsender.solana.rpc_client import SolanaRpc

# Percentile backing each named level
LEVEL_PERCENTILES = {
    PriorityFeeLevel.LOW: 70,
    PriorityFeeLevel.MEDIUM: 75,
    PriorityFeeLevel.HIGH: 80,
    PriorityFeeLevel.VERY_HIGH: 85,
    PriorityFeeLevel.ULTIMATE: 95,
}


def calculate_percentiles(fees: Sequence[int]) -> Dict[int, int]:
    """
    Nearest-rank percentiles of ``fees``.

    Args:
        fees: Fee observations in any order (must not be empty)

    Returns:
        Mapping of percentile (70, 75, 80, 85, 95) to fee value
    """
    sorted_fees = sorted(fees)
    n = len(sorted_fees)
    percentiles = {}
    for p in FEE_PERCENTILES:
        rank = min(max(-(-p * n // 100), 1), n)  # ceil(p / 100 * n) in integers
        percentiles[p] = sorted_fees[rank - 1]
    return percentiles


class FeeOracle:
    """
    Estimates priority fees (micro-lamports per compute unit) from recent
    network fee activity.
    """

    def __init__(self, rpc: SolanaRpc):
        """
        Initialize the fee oracle.

        Args:
            rpc: Shared RPC handle
        """
        self.rpc = rpc

    async def get_priority_fee_estimate(self, addresses: Sequence[Pubkey], level: FeeLevel) -> int:
        """
        Gets the priority fee for a level.

        ``NONE`` and custom fees are resolved without touching the network.

        Args:
            addresses: Accounts the transaction locks
            level: Requested fee level

        Returns:
            Fee in micro-lamports per compute unit
        """
        if isinstance(level, CustomFee):
            return level.amount
        if level == PriorityFeeLevel.NONE:
            return 0

        levels = await self.get_priority_fee_levels_estimate(addresses)
        return levels.get(level, 0)

    async def get_priority_fee_levels_estimate(self, addresses: Sequence[Pubkey]) -> Dict[PriorityFeeLevel, int]:
        """
        Estimates every named level from recent prioritization fees.

        Observations are ordered by slot, most recent first, and cut into
        windows of 150. Percentiles are taken per window over at most three
        windows; the values that stick are those of the last window
        processed, i.e. the oldest one.

        Args:
            addresses: Accounts the transaction locks

        Returns:
            Mapping of every level to its fee; all zeros without data
        """
        priority_fees = {level: 0 for level in PriorityFeeLevel}

        recent_fees = await self.rpc.get_recent_prioritization_fees(addresses)
        if not recent_fees:
            logger.debug("No recent prioritization fees, estimating zero")
            return priority_fees

        sorted_fees = sorted(recent_fees, key=lambda f: f.slot, reverse=True)
        chunks: List[list] = [
            sorted_fees[i:i + FEE_CHUNK_SIZE] for i in range(0, len(sorted_fees), FEE_CHUNK_SIZE)
        ][:FEE_MAX_CHUNKS]

        # TODO: aggregate across windows instead of keeping the oldest one once callers can absorb the change
        percentiles: Dict[int, int] = {}
        for chunk in chunks:
            percentiles = calculate_percentiles([f.prioritization_fee for f in chunk])

        for level, p in LEVEL_PERCENTILES.items():
            priority_fees[level] = percentiles.get(p, 0)

        logger.debug(
            f"Priority fee levels estimated from {len(recent_fees)} observations",
            extra={"levels": {level.name: fee for level, fee in priority_fees.items()}}
        )

        return priority_fees
