"""
Structured fan-out: run labelled coroutines concurrently and capture each outcome.

Unlike asyncio.TaskGroup, one failing task does not cancel its siblings; the failure
is captured as a typed TaskOutcome so the caller can substitute an explicit default.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Generic, List, Optional, Sequence, Tuple, TypeVar

from .errors import PartialFailure, UnknownContentType

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TaskOutcome(Generic[T]):
    """Result of one labelled task: either a value or the error that replaced it."""

    label: str
    value: Optional[T] = None
    error: Optional[PartialFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: T) -> T:
        """Value when the task succeeded, else default."""
        return self.value if self.ok and self.value is not None else default


async def gather_outcomes(tasks: Sequence[Tuple[str, Awaitable[T]]]) -> List[TaskOutcome[T]]:
    """
    Await all (label, awaitable) pairs concurrently; outcomes keep input order.

    UnknownContentType is a programming error and is re-raised instead of captured.
    """
    if not tasks:
        return []
    labels = [label for label, _ in tasks]
    results = await asyncio.gather(*(aw for _, aw in tasks), return_exceptions=True)
    outcomes: List[TaskOutcome[T]] = []
    for label, result in zip(labels, results):
        if isinstance(result, UnknownContentType):
            raise result
        if isinstance(result, Exception):
            failure = PartialFailure(label, result)
            logger.warning("[fanout] %s", failure)
            outcomes.append(TaskOutcome(label=label, error=failure))
        elif isinstance(result, BaseException):
            raise result
        else:
            outcomes.append(TaskOutcome(label=label, value=result))
    return outcomes
