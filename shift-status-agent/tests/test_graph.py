# tests/test_graph.py
import pytest
from datetime import date, datetime
from unittest.mock import MagicMock

from graph.graph import route_after_load, build_graph
from services.config_loader import load_config
from services.memory_store import InMemoryShiftStore
from services.shift_models import Segment, Shift, ShiftStatus


def _make_state(**overrides):
    base = {
        "employee_id": "E001",
        "shift_date": "2026-10-17",
        "now": datetime(2026, 10, 17, 21, 48),
        "shift": None,
        "status": None,
        "corrected": False,
        "action_taken": None,
        "error_message": None,
        "extra": {},
    }
    base.update(overrides)
    return base


def _make_shift(status=ShiftStatus.ACTIVE):
    return Shift(
        shift_id="SH-1",
        employee_id="E001",
        date=date(2026, 10, 17),
        segments=[Segment(1, "09:30", "21:33", 12.05)],
        status=status,
        total_duration=12.05,
        last_end_time="21:33",
    )


def test_route_load_not_found():
    """シフトが無い場合endへ"""
    state = _make_state(action_taken="not_found")
    assert route_after_load(state) == "end"


def test_route_load_error():
    """読み込みエラーの場合notifyへ"""
    state = _make_state(action_taken="error", error_message="timeout")
    assert route_after_load(state) == "notify"


def test_route_load_found():
    """シフトがある場合reconcileへ"""
    state = _make_state(shift=_make_shift())
    assert route_after_load(state) == "reconcile"


def test_build_graph():
    """グラフが正常にビルドできること"""
    graph = build_graph()
    assert graph is not None


@pytest.mark.asyncio
async def test_graph_corrects_stale_status():
    """グラフ実行で古いステータスが補正されること"""
    store = InMemoryShiftStore([_make_shift()])
    notifier = MagicMock()
    config = load_config("nonexistent.yaml")
    config["slack"]["notify_corrections"] = True
    graph = build_graph(store=store, notifier=notifier, config=config)

    final = await graph.ainvoke(_make_state())

    assert final["action_taken"] == "corrected"
    assert final["status"] == "COMPLETED"
    assert store.snapshot("SH-1").status == ShiftStatus.COMPLETED
    notifier.send.assert_called_once()
    assert "ACTIVE" in notifier.send.call_args.args[0]


@pytest.mark.asyncio
async def test_graph_missing_shift_ends_quietly():
    """シフトが無い場合は何も通知しないこと"""
    store = InMemoryShiftStore()
    notifier = MagicMock()
    graph = build_graph(store=store, notifier=notifier, config=load_config("nonexistent.yaml"))

    final = await graph.ainvoke(_make_state())

    assert final["action_taken"] == "not_found"
    notifier.send.assert_not_called()
    notifier.send_error.assert_not_called()
