"""
Exceptions raised by the smart transaction pipeline.

Callers that retry Jito submissions can check
``JitoClientError.is_rate_limited`` to back off on throttling.
"""

from typing import Any, Optional


class SmartTransactionError(Exception):
    """Base exception for smart transaction errors."""
    pass


class CompileError(SmartTransactionError):
    """Exception raised when the transaction message cannot be compiled."""
    pass


class SigningError(SmartTransactionError):
    """Exception raised when the transaction cannot be signed."""
    pass


class SimulationError(SmartTransactionError):
    """Exception raised when simulation shows the transaction would fail on-chain."""

    def __init__(self, err: Any, logs: Optional[list] = None):
        self.err = err
        self.logs = logs or []
        super().__init__(f"Simulation failed: {err}")


class RpcClientError(SmartTransactionError):
    """Exception raised on RPC transport or node errors."""
    pass


class TransactionFailedError(RpcClientError):
    """Exception raised when the network reports the transaction as failed."""

    def __init__(self, signature: Any, err: Any):
        self.signature = signature
        self.err = err
        super().__init__(f"Transaction {signature} failed with error: {err}")


class ConfirmationTimeoutError(RpcClientError):
    """
    Exception raised when a transaction is not confirmed in time.

    The transaction may still land later; treat the outcome as unknown.
    """

    def __init__(self, signature: Any, elapsed: float):
        self.signature = signature
        self.elapsed = elapsed
        super().__init__(f"Unable to confirm transaction {signature} in {int(elapsed)} seconds")


class JitoClientError(SmartTransactionError):
    """Exception raised on any failure of the Jito bundle path."""

    RATE_LIMIT_INDICATORS = (
        "rate limit",
        "too many requests",
        "throttle",
    )

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(f"JitoClientError: {message}")

    @property
    def is_rate_limited(self) -> bool:
        """True if the block engine throttled the request."""
        if self.status_code == 429:
            return True
        error_lower = str(self).lower()
        return any(indicator in error_lower for indicator in self.RATE_LIMIT_INDICATORS)


class BundleFailedError(JitoClientError):
    """Exception raised when the block engine reports the bundle as failed."""

    def __init__(self, bundle_id: str, err: Any):
        self.bundle_id = bundle_id
        self.err = err
        super().__init__(f"Bundle {bundle_id} failed: {err}")


class BundleTimeoutError(JitoClientError):
    """Exception raised when a bundle does not reach a terminal status in time."""

    def __init__(self, bundle_id: str, elapsed: float):
        self.bundle_id = bundle_id
        self.elapsed = elapsed
        super().__init__(f"Unable to confirm bundle {bundle_id} in {int(elapsed)} seconds")
