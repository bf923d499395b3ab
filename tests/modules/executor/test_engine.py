import asyncio
import random

import pytest

from tapsim.core.constants import RunStatus
from tapsim.core.errors import EngineBusyError
from tapsim.modules.executor.engine import ExecutionEngine
from tapsim.modules.executor.types import CancelToken
from tapsim.modules.geometry import Rect
from tapsim.modules.tasks.model import FunctionBlock, LoopBlock, TapBlock, Task
from tapsim.modules.ui.presenter import RecordingPresenter


class _VirtualClock:
    """Records requested sleeps instead of waiting."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _engine(presenter=None, clock=None, **kwargs):
    clock = clock or _VirtualClock()
    return ExecutionEngine(presenter, tap_duration=0.8, sleep=clock.sleep, **kwargs), clock


def _enter_order(presenter):
    return [e.block_id for e in presenter.events() if e.kind == "block_enter"]


@pytest.mark.asyncio
async def test_empty_task_completes_without_effects():
    engine, clock = _engine()

    report = await engine.execute_task(Task(id=1))

    assert report.status == RunStatus.EMPTY
    assert report.effects == 0
    assert clock.sleeps == []
    assert engine.busy is False


@pytest.mark.asyncio
async def test_scenario_full_region_then_loop_of_point_taps():
    presenter = RecordingPresenter()
    engine, clock = _engine(presenter)
    inner = TapBlock(id="inner", region=Rect(0, 0, 0, 0))
    task = Task(
        id=1,
        blocks=[
            TapBlock(id="full", region=Rect(0, 0, 320, 720)),
            LoopBlock(id="loop", iterations=2, blocks=[inner]),
        ],
    )

    report = await engine.execute_task(task)

    assert report.status == RunStatus.SUCCEEDED
    assert report.effects == 3
    assert [t.block_id for t in report.taps] == ["full", "inner", "inner"]
    assert clock.now >= 3 * 0.8
    assert clock.sleeps == [0.8, 0.8, 0.8]
    assert (report.taps[1].x, report.taps[1].y) == (0, 0)
    assert 0 <= report.taps[0].x <= 320 and 0 <= report.taps[0].y <= 720


@pytest.mark.asyncio
async def test_tap_point_stays_inside_unordered_region():
    engine, _ = _engine(rng=random.Random(7))
    block = TapBlock(id="t", region=Rect(x1=250, y1=600, x2=50, y2=100))
    task = Task(id=1, blocks=[block] * 200)

    report = await engine.execute_task(task)

    assert report.effects == 200
    for tap in report.taps:
        assert 50 <= tap.x <= 250
        assert 100 <= tap.y <= 600


@pytest.mark.asyncio
async def test_tap_uses_min_corner_plus_scaled_uniform_samples():
    class _FixedRng:
        def __init__(self, values):
            self._values = iter(values)

        def random(self):
            return next(self._values)

    engine, _ = _engine(rng=_FixedRng([0.25, 0.5]))
    block = TapBlock(id="t", region=Rect(x1=200, y1=400, x2=100, y2=200))

    report = await engine.execute_task(Task(id=1, blocks=[block]))

    assert (report.taps[0].x, report.taps[0].y) == (125, 300)


@pytest.mark.asyncio
async def test_unconfigured_tap_is_noop():
    engine, clock = _engine()

    report = await engine.execute_task(Task(id=1, blocks=[TapBlock(id="t")]))

    assert report.status == RunStatus.SUCCEEDED
    assert report.effects == 0
    assert report.skipped_unconfigured == 1
    assert clock.sleeps == []


@pytest.mark.asyncio
@pytest.mark.parametrize("n,k", [(1, 1), (3, 2), (4, 3)])
async def test_loop_runs_n_times_k_children_in_order(n, k):
    presenter = RecordingPresenter()
    engine, _ = _engine(presenter)
    children = [TapBlock(id=f"c{i}", region=Rect(0, 0, 1, 1)) for i in range(k)]
    loop = LoopBlock(id="loop", iterations=n, blocks=children)

    report = await engine.execute_task(Task(id=1, blocks=[loop]))

    assert report.effects == n * k
    assert [t.block_id for t in report.taps] == [f"c{i}" for i in range(k)] * n
    assert _enter_order(presenter) == ["loop"] + [f"c{i}" for i in range(k)] * n


@pytest.mark.asyncio
@pytest.mark.parametrize("iterations", [0, None, -2])
async def test_non_positive_or_missing_iterations_run_once(iterations):
    engine, _ = _engine()
    loop = LoopBlock(id="loop", iterations=iterations, blocks=[TapBlock(id="c", region=Rect(0, 0, 1, 1))])

    report = await engine.execute_task(Task(id=1, blocks=[loop]))

    assert report.effects == 1


@pytest.mark.asyncio
async def test_nested_function_and_loop_depth_first_order():
    presenter = RecordingPresenter()
    engine, _ = _engine(presenter)
    r = Rect(0, 0, 10, 10)
    task = Task(
        id=1,
        blocks=[
            FunctionBlock(
                id="fn",
                blocks=[
                    TapBlock(id="a", region=r),
                    LoopBlock(id="lp", iterations=2, blocks=[TapBlock(id="b", region=r), TapBlock(id="c", region=r)]),
                ],
            ),
            TapBlock(id="d", region=r),
        ],
    )

    report = await engine.execute_task(task)

    assert [t.block_id for t in report.taps] == ["a", "b", "c", "b", "c", "d"]
    assert _enter_order(presenter) == ["fn", "a", "lp", "b", "c", "b", "c", "d"]
    exits = [e.block_id for e in presenter.events() if e.kind == "block_exit"]
    assert exits == ["a", "b", "c", "b", "c", "lp", "fn", "d"]


@pytest.mark.asyncio
async def test_failing_child_is_swallowed_and_counted():
    calls = {"n": 0}

    async def _flaky_sleep(seconds):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("feedback lost")

    engine = ExecutionEngine(None, tap_duration=0.8, sleep=_flaky_sleep)
    r = Rect(0, 0, 5, 5)
    loop = LoopBlock(id="loop", iterations=3, blocks=[TapBlock(id="t", region=r)])
    task = Task(id=1, blocks=[loop, TapBlock(id="after", region=r)])

    report = await engine.execute_task(task)

    assert report.status == RunStatus.FAILED
    assert report.error_count == 1
    assert report.errors[0].block_id == "t"
    assert "feedback lost" in report.errors[0].message
    # 剩余迭代和后续兄弟积木照常执行
    assert [t.block_id for t in report.taps] == ["t", "t", "after"]
    assert calls["n"] == 4


@pytest.mark.asyncio
async def test_presenter_failures_do_not_abort_execution():
    class _BrokenPresenter:
        def notify_block_enter(self, block_id):
            raise RuntimeError("no element")

        def notify_block_exit(self, block_id):
            raise RuntimeError("no element")

    engine, _ = _engine(_BrokenPresenter())
    task = Task(id=1, blocks=[TapBlock(id="t", region=Rect(0, 0, 1, 1))])

    report = await engine.execute_task(task)

    assert report.status == RunStatus.SUCCEEDED
    assert report.effects == 1


@pytest.mark.asyncio
async def test_engine_does_not_mutate_task():
    engine, _ = _engine()
    task = Task(
        id=1,
        blocks=[LoopBlock(id="l", iterations=0, blocks=[TapBlock(id="t", region=Rect(9, 9, 1, 1))])],
    )
    before = task.to_dict()

    await engine.execute_task(task)

    assert task.to_dict() == before


@pytest.mark.asyncio
async def test_second_concurrent_run_rejected():
    gate = asyncio.Event()

    async def _blocking_sleep(seconds):
        await gate.wait()

    engine = ExecutionEngine(None, tap_duration=0.8, sleep=_blocking_sleep)
    task = Task(id=1, blocks=[TapBlock(id="t", region=Rect(0, 0, 1, 1))])

    first = asyncio.create_task(engine.execute_task(task))
    await asyncio.sleep(0)
    assert engine.busy is True
    assert engine.executing == ["t"]

    with pytest.raises(EngineBusyError):
        await engine.execute_task(task)

    gate.set()
    report = await first
    assert report.status == RunStatus.SUCCEEDED
    assert engine.busy is False
    assert engine.executing == []


@pytest.mark.asyncio
async def test_cancel_token_stops_before_next_block():
    token = CancelToken()
    clock = _VirtualClock()

    async def _sleep_then_cancel(seconds):
        await clock.sleep(seconds)
        token.cancel()

    engine = ExecutionEngine(None, tap_duration=0.8, sleep=_sleep_then_cancel)
    r = Rect(0, 0, 1, 1)
    task = Task(id=1, blocks=[LoopBlock(id="l", iterations=5, blocks=[TapBlock(id="t", region=r)])])

    report = await engine.execute_task(task, token)

    assert report.status == RunStatus.CANCELLED
    assert report.effects == 1
    assert report.errors == []


@pytest.mark.asyncio
async def test_real_timer_waits_tap_duration():
    engine = ExecutionEngine(None, tap_duration=0.05)
    task = Task(id=1, blocks=[TapBlock(id="t", region=Rect(0, 0, 1, 1))] * 2)

    loop = asyncio.get_running_loop()
    started = loop.time()
    await engine.execute_task(task)

    assert loop.time() - started >= 0.1 - 0.01
