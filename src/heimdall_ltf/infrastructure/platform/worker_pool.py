import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

_lock = threading.Lock()
_executor: Optional[ThreadPoolExecutor] = None


def worker_pool(max_workers: int = 4) -> ThreadPoolExecutor:
    """Return the process-wide pool that runs deferred work.

    ``max_workers`` only applies when the pool is first created.
    """
    global _executor
    with _lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ltf-job")
        return _executor


def shutdown_worker_pool(wait: bool = True) -> None:
    global _executor
    with _lock:
        executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=wait)
