from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TypeVar

from notary.ledger.exceptions import LedgerError, LedgerTimeoutError
from notary.logging.logger import Log

T = TypeVar("T")

_executor = ThreadPoolExecutor(max_workers=16, thread_name_prefix="ledger-call")


def bounded_call(operation: str, timeout_seconds: float, fn: Callable[[], T]) -> T:
    """Run ``fn`` on the ledger call pool and wait at most ``timeout_seconds``.

    Failures are normalized to LedgerError. A timed-out call keeps running in
    the background; its result is discarded.

    Raises:
        LedgerTimeoutError: if the call did not finish in time.
        LedgerError: if the call raised.
    """
    future = _executor.submit(fn)
    try:
        return future.result(timeout=timeout_seconds)
    except FutureTimeoutError as exc:
        Log.error(f"{operation} timed out after {timeout_seconds}s")
        raise LedgerTimeoutError(f"{operation} timed out after {timeout_seconds}s") from exc
    except LedgerError:
        raise
    except Exception as exc:
        raise LedgerError(f"{operation} failed: {exc}") from exc
