"""
Tests for txsender/solana/models.py and txsender/solana/errors.py
"""

import pytest
from pydantic import ValidationError

from txsender.solana.errors import (
    BundleFailedError,
    ConfirmationTimeoutError,
    JitoClientError,
    RpcClientError,
    SmartTransactionError,
)
from txsender.solana.models import (
    CustomFee,
    ElapsedTime,
    PriorityFeeConfig,
    PriorityFeeLevel,
    SubmissionConfig,
)


class TestModels:
    """Configuration models."""

    def test_defaults(self):
        config = SubmissionConfig()
        assert config.default_compute_unit_limit == 1_400_000
        assert config.compute_unit_margin_multiplier == 1.15
        assert config.polling_interval == 2
        assert config.transaction_timeout == 60
        assert config.wait_for_confirmation
        assert config.priority_fee is None
        assert config.jito is None

    def test_config_is_frozen(self):
        config = SubmissionConfig()
        with pytest.raises(ValidationError):
            config.disable_simulation = True

    def test_fallback_limit_bounded(self):
        with pytest.raises(ValidationError):
            SubmissionConfig(default_compute_unit_limit=2_000_000)

    @pytest.mark.parametrize("margin", [float("nan"), float("inf")])
    def test_margin_must_be_finite(self, margin):
        with pytest.raises(ValidationError):
            SubmissionConfig(compute_unit_margin_multiplier=margin)

    def test_polling_interval_positive(self):
        with pytest.raises(ValidationError):
            SubmissionConfig(polling_interval=0)

    def test_custom_fee_not_negative(self):
        with pytest.raises(ValidationError):
            CustomFee(amount=-1)

    def test_fee_levels_are_ordered(self):
        assert PriorityFeeLevel.NONE < PriorityFeeLevel.LOW < PriorityFeeLevel.ULTIMATE
        assert PriorityFeeConfig().fee_level == PriorityFeeLevel.MEDIUM

    def test_elapsed_time_str(self):
        elapsed = ElapsedTime(prepare_and_simulate=0.125, send=0.5, confirm=1.5)
        assert str(elapsed) == "sim/send/confirm: 125/500/1500 ms"


class TestErrors:
    """Error taxonomy."""

    def test_hierarchy(self):
        assert issubclass(ConfirmationTimeoutError, RpcClientError)
        assert issubclass(BundleFailedError, JitoClientError)
        assert issubclass(JitoClientError, SmartTransactionError)

    @pytest.mark.parametrize("message,status_code,expected", [
        ("sendBundle failed", 429, True),
        ("Rate limit exceeded", None, True),
        ("Too Many Requests", 503, True),
        ("bundle 4291 dropped", None, False),
        ("internal error", 500, False),
    ])
    def test_rate_limit_detection(self, message, status_code, expected):
        assert JitoClientError(message, status_code).is_rate_limited is expected
