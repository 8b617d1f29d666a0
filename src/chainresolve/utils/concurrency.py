from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """Brief: Result-or-error of one sub-read; exactly one of the fields is set."""

    result: Optional[T] = None
    error: Optional[BaseException] = None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.result  # type: ignore[return-value]


def gather(calls: Sequence[Callable[[], Any]]) -> List[Outcome[Any]]:
    """
    Brief: Run independent read calls concurrently and join them.

    Inputs:
      - calls: zero-argument callables with no ordering dependency between them.

    Outputs:
      - list[Outcome] in the same order as calls. Exceptions are captured per
        call so the caller decides which one wins.

    Example:
      >>> [o.result for o in gather([lambda: 1, lambda: 2])]
      [1, 2]
    """
    if len(calls) <= 1:
        return [_run(c) for c in calls]
    with ThreadPoolExecutor(max_workers=len(calls)) as executor:
        futures = [executor.submit(_run, c) for c in calls]
        return [f.result() for f in futures]


def gather_or_raise(calls: Sequence[Callable[[], Any]]) -> List[Any]:
    """Brief: gather() then re-raise the first captured error in call order."""
    return [o.unwrap() for o in gather(calls)]


def _run(call: Callable[[], Any]) -> Outcome[Any]:
    try:
        return Outcome(result=call())
    except Exception as e:
        logger.debug("Concurrent sub-read failed: %s", e)
        return Outcome(error=e)
