from __future__ import annotations
import threading

import pytest

from app.core.errors import PipelineAlreadyRunning, PipelineCancelled
from app.services.pipeline_runner import PipelineRunner


def test_start_runs_in_background_and_returns_execution_id(make_orchestrator):
    runner = PipelineRunner(make_orchestrator(upstream=["J1", "J2"]))

    execution_id = runner.start(10)

    assert runner.wait(5)
    assert not runner.is_running
    assert runner.last_result.execution_id == execution_id
    assert runner.last_result.new_jobs == 2
    assert runner.orchestrator.storage.get_latest_execution().status == "completed"


def test_second_start_while_running_is_rejected(make_orchestrator):
    gate = threading.Event()
    runner = PipelineRunner(make_orchestrator(upstream=["J1"], gate=gate))

    execution_id = runner.start(10)
    try:
        assert runner.is_running
        with pytest.raises(PipelineAlreadyRunning) as exc_info:
            runner.start(10)
        assert exc_info.value.execution_id == execution_id
    finally:
        gate.set()
        runner.wait(5)

    assert runner.start(10) != execution_id
    runner.wait(5)


def test_cancel_marks_the_run_failed(make_orchestrator):
    gate = threading.Event()
    runner = PipelineRunner(make_orchestrator(upstream=["J1", "J2", "J3"], gate=gate, concurrency=1))

    runner.start(10)
    assert runner.cancel()
    gate.set()
    assert runner.wait(5)

    execution = runner.orchestrator.storage.get_latest_execution()
    assert execution.status == "failed"
    assert execution.error_message == "cancelled"
    assert isinstance(runner.last_error, PipelineCancelled)


def test_cancel_without_active_run_returns_false(make_orchestrator):
    runner = PipelineRunner(make_orchestrator())

    assert runner.cancel() is False
    assert runner.wait(0.1)


def test_start_rejects_non_positive_batch(make_orchestrator):
    with pytest.raises(ValueError):
        PipelineRunner(make_orchestrator()).start(0)
