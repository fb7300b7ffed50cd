"""Await an operation against a deadline without cancelling it."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DeadlineResult(Generic[T]):
    """
    Outcome of await_with_deadline.

    Exactly one of: a value (ok), a captured error, or timed_out.
    """
    label: str
    value: Optional[T] = None
    error: Optional[BaseException] = None
    timed_out: bool = False
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.error is None

    def describe_failure(self) -> str:
        if self.timed_out:
            return f"{self.label} timed out"
        if self.error is not None:
            return f"{self.label} failed: {type(self.error).__name__}: {self.error}"
        return ""


def _discard_abandoned(task: "asyncio.Task[Any]") -> None:
    # Retrieve the exception so the loop does not report it as never retrieved
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Abandoned task {task.get_name()} finished with error: {error}")
    else:
        logger.debug(f"Abandoned task {task.get_name()} finished after its deadline")


async def await_with_deadline(
    operation: Awaitable[T],
    timeout: float,
    label: str = "operation"
) -> DeadlineResult[T]:
    """
    Race an awaitable against a timeout.

    Unlike asyncio.wait_for, the operation is NOT cancelled when the deadline
    passes: its task keeps running in the background and its eventual result
    is discarded. The underlying provider call therefore still completes and
    still consumes quota.

    Args:
        operation: Coroutine or future to await
        timeout: Deadline in seconds
        label: Name used in logs and failure descriptions

    Returns:
        DeadlineResult holding the value, the raised error, or timed_out=True
    """
    start_time = time.monotonic()
    task = asyncio.ensure_future(operation)
    if isinstance(task, asyncio.Task):
        task.set_name(label)

    done, _ = await asyncio.wait({task}, timeout=timeout)
    elapsed_ms = int((time.monotonic() - start_time) * 1000)

    if task not in done:
        task.add_done_callback(_discard_abandoned)
        logger.warning(f"{label} exceeded its {timeout}s deadline; abandoning result")
        return DeadlineResult(label=label, timed_out=True, elapsed_ms=elapsed_ms)

    if task.cancelled():
        return DeadlineResult(label=label, error=asyncio.CancelledError(), elapsed_ms=elapsed_ms)

    error = task.exception()
    if error is not None:
        return DeadlineResult(label=label, error=error, elapsed_ms=elapsed_ms)

    return DeadlineResult(label=label, value=task.result(), elapsed_ms=elapsed_ms)
