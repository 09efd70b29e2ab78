from __future__ import annotations
import logging
import threading

from app.core.errors import PipelineAlreadyRunning, PipelineCancelled
from app.services.pipeline_service import ExecutionResult, PipelineOrchestrator, PipelineStep, build_orchestrator

logger = logging.getLogger(__name__)


class PipelineRunner:
    """Starts orchestrator runs on a background thread, one at a time."""

    def __init__(self, orchestrator: PipelineOrchestrator):
        self.orchestrator = orchestrator
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._cancel_event: threading.Event | None = None
        self.current_execution_id: int | None = None
        self.last_result: ExecutionResult | None = None
        self.last_error: Exception | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, batch_size: int) -> int:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        with self._lock:
            if self.is_running:
                raise PipelineAlreadyRunning(self.current_execution_id)
            execution = self.orchestrator.storage.create_execution(current_step=PipelineStep.INITIALIZING)
            cancel_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(batch_size, cancel_event, execution.id),
                name=f"pipeline-{execution.id}",
                daemon=True,
            )
            self._thread = thread
            self._cancel_event = cancel_event
            self.current_execution_id = execution.id
            thread.start()
        logger.info("pipeline execution %s started with batch size %s", execution.id, batch_size)
        return execution.id

    def cancel(self) -> bool:
        with self._lock:
            if not self.is_running or self._cancel_event is None:
                return False
            self._cancel_event.set()
        logger.info("cancellation requested for execution %s", self.current_execution_id)
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the active run finishes; returns False on timeout."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _run(self, batch_size: int, cancel_event: threading.Event, execution_id: int) -> None:
        self.last_error = None
        try:
            self.last_result = self.orchestrator.run(batch_size, cancel_event=cancel_event, execution_id=execution_id)
        except PipelineCancelled as exc:
            self.last_error = exc
            logger.info("pipeline execution %s cancelled", execution_id)
        except Exception as exc:  # noqa: BLE001
            self.last_error = exc
            logger.exception("pipeline execution %s failed", execution_id)


_runner: PipelineRunner | None = None
_runner_lock = threading.Lock()


def get_pipeline_runner() -> PipelineRunner:
    global _runner
    with _runner_lock:
        if _runner is None:
            _runner = PipelineRunner(build_orchestrator())
        return _runner
