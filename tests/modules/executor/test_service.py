import asyncio

import pytest

from tapsim.core.constants import RunStatus
from tapsim.core.errors import EngineBusyError, TaskNotFoundError
from tapsim.modules.executor.engine import ExecutionEngine
from tapsim.modules.executor.service import ExecutorService
from tapsim.modules.geometry import Point, Rect
from tapsim.modules.tasks.state import AppState
from tapsim.modules.ui.presenter import RecordingPresenter


@pytest.fixture()
def state(repository):
    return AppState(repository, presenter=RecordingPresenter())


def _gated_engine(presenter=None):
    gate = asyncio.Event()

    async def _sleep(seconds):
        await gate.wait()

    return ExecutionEngine(presenter, tap_duration=0.8, sleep=_sleep), gate


def _configured_task(state, taps=1):
    task = state.create_task()
    for _ in range(taps):
        block = state.add_block(task.id, "tap")
        block.region = Rect(0, 0, 10, 10)
    return task


@pytest.mark.asyncio
async def test_run_current_task_records_report(state):
    task = _configured_task(state, taps=2)
    service = ExecutorService(ExecutionEngine(None, tap_duration=0), state)

    report = await service.run()

    assert report.task_id == task.id
    assert report.status == RunStatus.SUCCEEDED
    assert service.last_report is report
    assert service.status()["running"] is False
    assert service.status()["last_report"]["effects"] == 2


@pytest.mark.asyncio
async def test_start_rejected_while_running_and_task_locked(state):
    task = _configured_task(state)
    engine, gate = _gated_engine()
    service = ExecutorService(engine, state)

    run = service.start(task.id)
    await asyncio.sleep(0)

    assert service.running is True
    assert state.running_task_id == task.id
    with pytest.raises(EngineBusyError):
        service.start(task.id)
    with pytest.raises(EngineBusyError):
        state.add_block(task.id, "tap")
    assert service.status()["executing"] == [task.blocks[0].id]

    gate.set()
    report = await run
    assert report.status == RunStatus.SUCCEEDED
    assert state.running_task_id is None
    state.add_block(task.id, "tap")


@pytest.mark.asyncio
async def test_stop_cancels_in_flight_run(state):
    task = _configured_task(state, taps=3)
    engine, gate = _gated_engine()
    service = ExecutorService(engine, state)

    service.start(task.id)
    await asyncio.sleep(0)
    assert service.stop() is True
    gate.set()
    report = await service.wait()

    assert report.status == RunStatus.CANCELLED
    assert report.effects == 1
    assert service.stop() is False


@pytest.mark.asyncio
async def test_start_without_task_raises(state):
    service = ExecutorService(ExecutionEngine(None, tap_duration=0), state)

    with pytest.raises(TaskNotFoundError):
        service.start()
    with pytest.raises(TaskNotFoundError):
        service.start(12345)


@pytest.mark.asyncio
async def test_start_cancels_drag_on_running_task(state):
    task = _configured_task(state)
    tap = task.blocks[0]
    engine, gate = _gated_engine()
    service = ExecutorService(engine, state)

    state.arm_block(task.id, tap.id)
    state.pointer_down(Point(100, 100))
    run = service.start(task.id)
    await asyncio.sleep(0)

    assert state.selector.armed is None
    assert state.selector.dragging is False
    assert state.pointer_up(Point(200, 200)) is None
    assert tap.region == Rect(0, 0, 10, 10)

    gate.set()
    await run


@pytest.mark.asyncio
async def test_drag_on_other_task_survives_start(state):
    running = _configured_task(state)
    other = _configured_task(state)
    other_tap = other.blocks[0]
    engine, gate = _gated_engine()
    service = ExecutorService(engine, state)

    state.arm_block(other.id, other_tap.id)
    state.pointer_down(Point(0, 0))
    run = service.start(running.id)
    await asyncio.sleep(0)

    region = state.pointer_up(Point(160, 360))
    assert region is not None
    assert other_tap.region == region

    gate.set()
    await run
