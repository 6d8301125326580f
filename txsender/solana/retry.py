"""
Bounded retry policy for fallible network stages.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple

from loguru import logger


class RetryableOutcome(Exception):
    """
    Raised by an attempt to signal a transient result that should be
    retried, e.g. a simulation rejected for a stale blockhash.
    """
    pass


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry an async attempt a fixed number of times, immediately, as long
    as ``is_retryable`` accepts the raised exception.
    """
    max_attempts: int
    is_retryable: Callable[[BaseException], bool]

    async def run(self, attempt: Callable[[], Awaitable[Any]], operation_name: str = "operation") -> Tuple[bool, Optional[Any]]:
        """
        Run ``attempt`` until it returns or a non-retryable error is raised.

        Args:
            attempt: Zero-argument coroutine function
            operation_name: Name used in log messages

        Returns:
            ``(True, result)`` on success, ``(False, None)`` if every attempt
            failed with a retryable error

        Raises:
            Any exception ``is_retryable`` rejects
        """
        for attempt_number in range(1, self.max_attempts + 1):
            try:
                return True, await attempt()
            except Exception as e:
                if not self.is_retryable(e):
                    raise
                logger.debug(
                    "{} attempt {}/{} failed: {}", operation_name, attempt_number, self.max_attempts, e,
                    extra={"attempt": attempt_number, "max_attempts": self.max_attempts}
                )

        return False, None
