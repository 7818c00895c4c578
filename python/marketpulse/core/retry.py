from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from loguru import logger

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3


def _is_missing(result: object) -> bool:
    return result is None


@dataclass(frozen=True)
class RetryPolicy(Generic[T]):
    """Bounded retry over a call whose "no data" outcome is a result, not an error.

    Only results matching ``should_retry`` trigger another attempt. Exceptions
    raised by the operation propagate on the first occurrence. When every
    attempt comes back empty the policy returns ``None``.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    should_retry: Callable[[Optional[T]], bool] = field(default=_is_missing)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    async def execute(
        self,
        operation: Callable[[], Awaitable[Optional[T]]],
        name: str = "operation",
    ) -> Optional[T]:
        for attempt in range(1, self.max_attempts + 1):
            result = await operation()
            if not self.should_retry(result):
                return result
            logger.debug(
                "{} returned no data (attempt {}/{})", name, attempt, self.max_attempts
            )

        logger.debug("{} exhausted {} attempts", name, self.max_attempts)
        return None
