"""
Models for smart transaction submission.
"""
from enum import Enum, IntEnum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from solders.hash import Hash
from solders.signature import Signature

from txsender.config import (
    DEFAULT_COMPUTE_UNIT_MARGIN_MULTIPLIER,
    DEFAULT_POLLING_INTERVAL_SECONDS,
    DEFAULT_TRANSACTION_TIMEOUT_SECONDS,
    MAX_COMPUTE_UNIT_LIMIT,
)


class PriorityFeeLevel(IntEnum):
    """Named priority fee levels, ordered from cheapest to most aggressive."""
    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    VERY_HIGH = 4
    ULTIMATE = 5


class CustomFee(BaseModel):
    """An explicit fee (micro-lamports per compute unit) that bypasses estimation."""
    model_config = ConfigDict(frozen=True)

    amount: int = Field(ge=0)


FeeLevel = Union[PriorityFeeLevel, CustomFee]


class PriorityFeeConfig(BaseModel):
    """Priority fee policy for a submission."""
    model_config = ConfigDict(frozen=True)

    fee_level: FeeLevel = PriorityFeeLevel.MEDIUM
    fee_min: Optional[int] = Field(default=None, ge=0)
    fee_max: Optional[int] = Field(default=None, ge=0)


class JitoConfig(BaseModel):
    """Jito bundle delivery policy."""
    model_config = ConfigDict(frozen=True)

    uuid: str = ""
    tips: int = Field(default=0, ge=0)  # lamports
    region: Optional[str] = None


class SubmissionConfig(BaseModel):
    """
    Immutable options for a single smart transaction submission.

    When ``jito`` is set the transaction goes out as a Jito bundle and no
    priority fee instruction is added, regardless of ``priority_fee``.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    priority_fee: Optional[PriorityFeeConfig] = None
    jito: Optional[JitoConfig] = None
    # Only used if estimation fails; 0 omits the limit instruction
    default_compute_unit_limit: int = Field(default=MAX_COMPUTE_UNIT_LIMIT, ge=0, le=MAX_COMPUTE_UNIT_LIMIT)
    compute_unit_margin_multiplier: float = Field(default=DEFAULT_COMPUTE_UNIT_MARGIN_MULTIPLIER, allow_inf_nan=False)
    disable_simulation: bool = False
    ignore_simulation_error: bool = False
    sig_verify_on_simulation: bool = True
    wait_for_confirmation: bool = True
    polling_interval: float = Field(default=DEFAULT_POLLING_INTERVAL_SECONDS, gt=0)  # seconds
    transaction_timeout: float = Field(default=DEFAULT_TRANSACTION_TIMEOUT_SECONDS, gt=0)  # seconds
    blockhash: Optional[Hash] = None


class ElapsedTime(BaseModel):
    """Seconds elapsed since submission start at the end of each stage."""
    prepare_and_simulate: float = 0.0
    send: float = 0.0
    confirm: float = 0.0

    def __str__(self) -> str:
        return "sim/send/confirm: {}/{}/{} ms".format(
            int(self.prepare_and_simulate * 1000),
            int(self.send * 1000),
            int(self.confirm * 1000),
        )


class SubmissionResult(BaseModel):
    """Outcome of a smart transaction submission."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    signature: Optional[Signature] = None  # None when Jito confirmation was skipped
    priority_fee: int = 0  # micro-lamports per compute unit
    jito_bundle_id: Optional[str] = None
    elapsed_time: ElapsedTime = Field(default_factory=ElapsedTime)


class TxState(str, Enum):
    """Lifecycle of a submitted transaction."""
    BUILT = "built"
    SENT = "sent"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
