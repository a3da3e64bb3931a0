import logging
import threading
import uuid
from collections import deque
from concurrent.futures import Executor, Future
from typing import Deque, Dict, Optional

from heimdall_ltf.application import current_context, execution_context
from heimdall_ltf.domain import IAsyncEnqueuer, IUnitOfWork, JobHandle, JobStatus

logger = logging.getLogger(__name__)


class ThreadPoolEnqueuer(IAsyncEnqueuer):
    """Runs units of work later on a worker pool.

    Every unit runs in its own fresh execution context on a worker thread, so it
    never sees the enqueuing context's bindings, guard state or bypasses. No
    ordering between units, or between a unit and its caller, is guaranteed.

    Futures are released as soon as their job finishes. Handles of finished jobs
    are kept for the ``history_size`` most recent jobs only.

    Attributes:
        _executor: Worker pool shared with other enqueuers.
        _jobs: Last known handle per job id.
        _futures: Futures of jobs that have not finished yet.
        _finished: Ids of finished jobs, oldest first.
    """

    def __init__(self, executor: Executor, history_size: int = 1000) -> None:
        self._executor = executor
        self._history_size = history_size
        self._jobs: Dict[str, JobHandle] = {}
        self._futures: Dict[str, Future] = {}
        self._finished: Deque[str] = deque()
        self._lock = threading.Lock()

    def enqueue(self, unit_of_work: IUnitOfWork) -> JobHandle:
        current_context().record_queued_job()
        job_id = uuid.uuid4().hex
        handle = JobHandle(job_id=job_id)
        with self._lock:
            self._jobs[job_id] = handle
        future = self._executor.submit(self._run, job_id, unit_of_work)
        with self._lock:
            self._futures[job_id] = future
        # Registered after the future is stored, so an already finished job is released too.
        future.add_done_callback(lambda _: self._release(job_id))
        logger.debug("Queued %s as job %s", type(unit_of_work).__name__, job_id)
        return handle

    def status(self, job_id: str) -> JobHandle:
        """Return the latest handle for a job.

        Raises:
            KeyError: If the job id was not issued by this enqueuer or has left the history.
        """
        with self._lock:
            return self._jobs[job_id]

    def wait(self, job_id: str, timeout: Optional[float] = None) -> JobHandle:
        """Block until a job finishes and return its final handle."""
        with self._lock:
            future = self._futures.get(job_id)
        if future is not None:
            future.exception(timeout=timeout)
        return self.status(job_id)

    def _release(self, job_id: str) -> None:
        with self._lock:
            self._futures.pop(job_id, None)

    def _set_status(self, job_id: str, status: JobStatus, error: Optional[str] = None) -> None:
        with self._lock:
            self._jobs[job_id] = JobHandle(job_id=job_id, status=status, error=error)
            if status in (JobStatus.COMPLETED, JobStatus.FAILED):
                self._finished.append(job_id)
                while len(self._finished) > self._history_size:
                    self._jobs.pop(self._finished.popleft(), None)

    def _run(self, job_id: str, unit_of_work: IUnitOfWork) -> None:
        self._set_status(job_id, JobStatus.RUNNING)
        try:
            with execution_context():
                unit_of_work.execute()
        except Exception as e:
            logger.exception("Job %s (%s) failed", job_id, type(unit_of_work).__name__)
            self._set_status(job_id, JobStatus.FAILED, str(e))
            raise
        self._set_status(job_id, JobStatus.COMPLETED)
