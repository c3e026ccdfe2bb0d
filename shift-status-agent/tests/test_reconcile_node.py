import pytest
from datetime import date, datetime
from unittest.mock import AsyncMock

from graph.nodes.reconcile_node import reconcile_node
from services.errors import StoreError
from services.memory_store import InMemoryShiftStore
from services.shift_models import Segment, Shift, ShiftStatus


def _make_shift(status=ShiftStatus.ACTIVE, segments=None):
    return Shift(
        shift_id="SH-1",
        employee_id="E001",
        date=date(2026, 10, 17),
        segments=segments if segments is not None else [Segment(1, "09:30", "21:33", 12.05)],
        status=status,
        total_duration=12.05,
        last_end_time="21:33",
    )


def _make_state(shift, hour=21, minute=48):
    return {
        "employee_id": "E001",
        "shift_date": "2026-10-17",
        "now": datetime(2026, 10, 17, hour, minute),
        "shift": shift,
        "status": None,
        "corrected": False,
        "action_taken": None,
        "error_message": None,
        "extra": {},
    }


@pytest.mark.asyncio
async def test_reconcile_corrected():
    """保存値と異なれば補正してcorrectedを返すこと"""
    shift = _make_shift()
    store = InMemoryShiftStore([shift])

    result = await reconcile_node(_make_state(shift), shift_store=store)

    assert result["action_taken"] == "corrected"
    assert result["status"] == "COMPLETED"
    assert result["corrected"] is True
    assert result["extra"]["previous_status"] == "ACTIVE"
    assert result["extra"]["reason"] == "after_end"
    assert result["shift"].status == ShiftStatus.COMPLETED


@pytest.mark.asyncio
async def test_reconcile_in_sync():
    """一致していれば書き込まずin_sync"""
    shift = _make_shift(status=ShiftStatus.ACTIVE)
    store = InMemoryShiftStore([shift])

    result = await reconcile_node(_make_state(shift, hour=12), shift_store=store)

    assert result["action_taken"] == "in_sync"
    assert result["corrected"] is False
    assert store.writes == []


@pytest.mark.asyncio
async def test_reconcile_write_failure():
    """書き込み失敗はsync_failedとして表示用ステータスを返すこと"""
    store = AsyncMock()
    store.write_shift_update.side_effect = StoreError("updateShiftAsAdminが失敗しました")

    result = await reconcile_node(_make_state(_make_shift()), shift_store=store)

    assert result["action_taken"] == "sync_failed"
    assert result["status"] == "COMPLETED"
    assert result["corrected"] is False
    assert "updateShiftAsAdmin" in result["error_message"]


@pytest.mark.asyncio
async def test_reconcile_calculation_error():
    """判定できないシフトはerrorとしてDRAFTを表示すること"""
    shift = _make_shift(segments=[Segment(1, "9am", "5pm")])
    store = InMemoryShiftStore([shift])

    result = await reconcile_node(_make_state(shift), shift_store=store)

    assert result["action_taken"] == "error"
    assert result["status"] == "DRAFT"
    assert store.writes == []


@pytest.mark.asyncio
async def test_reconcile_uses_configured_rollover():
    """設定の日付跨ぎ境界を使うこと"""
    shift = _make_shift(status=ShiftStatus.COMPLETED)
    store = InMemoryShiftStore([shift])
    config = {
        "store": {"timeout_seconds": 10},
        "time_rules": {"midnight_rollover": {"early_morning_end_hour": 0, "late_evening_start_hour": 18}},
    }

    result = await reconcile_node(_make_state(shift, hour=0, minute=1), shift_store=store, app_config=config)

    assert result["status"] == "OFFLINE"
    assert result["action_taken"] == "corrected"


@pytest.mark.asyncio
async def test_reconcile_attaches_segment_warnings():
    """重複したセグメントは警告としてextraに載せ、判定はそのまま行うこと"""
    shift = _make_shift(segments=[Segment(1, "09:00", "12:00", 3.0), Segment(2, "11:00", "13:00", 2.0)])
    store = InMemoryShiftStore([shift])

    result = await reconcile_node(_make_state(shift), shift_store=store)

    assert result["extra"]["segment_warnings"] == ["セグメント1と2が重複しています"]
    assert result["status"] == "COMPLETED"


@pytest.mark.asyncio
async def test_reconcile_no_segment_warnings():
    shift = _make_shift()
    result = await reconcile_node(_make_state(shift, hour=12), shift_store=InMemoryShiftStore([shift]))
    assert result["extra"]["segment_warnings"] == []
