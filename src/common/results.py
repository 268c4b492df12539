"""Per-task result values and a fan-out helper that never short-circuits."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Iterable, List, Optional, TypeVar, Union

from common.http_client import HttpRequestError, ResponseSource

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful task outcome."""
    value: T


@dataclass(frozen=True)
class Err:
    """A failed task outcome.

    ``status`` follows HTTP semantics: 404 means "not there", 0 means no
    response was received.
    """
    status: int
    source: ResponseSource = ResponseSource.ONLINE
    reason: Optional[str] = None
    error: Optional[HttpRequestError] = None

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_transient(self) -> bool:
        return self.status == 0 or self.status >= 500

    @classmethod
    def not_found(cls, reason: str, source: ResponseSource = ResponseSource.ONLINE) -> "Err":
        return cls(status=404, source=source, reason=reason)

    @classmethod
    def from_error(cls, error: HttpRequestError) -> "Err":
        return cls(status=error.status, source=error.source, reason=error.reason, error=error)


Result = Union[Ok[T], Err]


async def gather_settled(aws: Iterable[Awaitable[Any]]) -> List[Result[Any]]:
    """Await every awaitable concurrently and collect one result per input.

    ``HttpRequestError`` becomes ``Err``; awaitables that already return a
    result value are passed through; plain values are wrapped in ``Ok``.
    Any other exception is re-raised once all siblings have finished.
    Cancelling the caller cancels every sibling.
    """
    outcomes = await asyncio.gather(*aws, return_exceptions=True)
    results: List[Result[Any]] = []
    unexpected: Optional[BaseException] = None
    for outcome in outcomes:
        if isinstance(outcome, HttpRequestError):
            results.append(Err.from_error(outcome))
        elif isinstance(outcome, BaseException):
            if unexpected is None:
                unexpected = outcome
        elif isinstance(outcome, (Ok, Err)):
            results.append(outcome)
        else:
            results.append(Ok(outcome))
    if unexpected is not None:
        raise unexpected
    return results
