"""正規ステータスと保存済みステータスの突き合わせ

reconcileは1回の呼び出しにつき最大1回だけ補正書き込みを行い、
再帰もリトライもしない。判定は(segments, date, now)だけで決まるため、
同じシフトを複数の呼び出し元が同時に突き合わせても同じ値に収束する。
"""
import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional, Union

from services.duration import normalize_shift
from services.errors import ShiftStatusError, StatusCalculationError, StoreError, StoreTimeout
from services.shift_models import Shift, ShiftStatus, ShiftUpdate
from services.status_classifier import classify_detailed
from services.store_interface import DateRange, ShiftStore
from services.time_compare import DEFAULT_ROLLOVER, MidnightRollover
from services.wire_format import status_to_wire

logger = logging.getLogger(__name__)

DEFAULT_STORE_TIMEOUT = 10.0


@dataclass
class ReconcileResult:
    shift: Shift                # 補正成功時は保存後の内容、それ以外は読み込んだ内容
    status: ShiftStatus         # 画面に表示すべきステータス
    corrected: bool             # 補正書き込みが成功したか
    error: Optional[ShiftStatusError] = None
    reason: str = ""

    @property
    def action(self) -> str:
        """結果種別: corrected / sync_failed / error / in_sync"""
        if self.corrected:
            return "corrected"
        if isinstance(self.error, StoreError):
            return "sync_failed"
        if self.error is not None:
            return "error"
        return "in_sync"


def _discard_result(write: asyncio.Future) -> None:
    if write.cancelled():
        return
    if write.exception() is not None:
        logger.info("キャンセル後の書き込みが失敗しました（結果は破棄）: %s", write.exception())


async def _write_with_timeout(
    store: ShiftStore, shift_id: str, update: ShiftUpdate, timeout: float
) -> None:
    write = asyncio.ensure_future(store.write_shift_update(shift_id, update))
    try:
        await asyncio.wait_for(asyncio.shield(write), timeout)
    except asyncio.TimeoutError as e:
        write.cancel()
        raise StoreTimeout(f"シフト{shift_id}の書き込みが{timeout}秒以内に完了しませんでした") from e
    except asyncio.CancelledError:
        # 呼び出し元のキャンセル後も書き込みは裏で完了させ、結果は使わない
        write.add_done_callback(_discard_result)
        raise
    except StoreError:
        raise
    except Exception as e:
        raise StoreError(f"シフト{shift_id}の書き込みに失敗しました: {e}") from e


def _corrective_update(stored: Shift, normalized: Shift, canonical: ShiftStatus) -> ShiftUpdate:
    """ステータスと、保存値と食い違う導出フィールドをまとめた1回分の更新"""
    update = ShiftUpdate(status=canonical)
    if round(stored.total_duration or 0.0, 2) != normalized.total_duration:
        update.total_duration = normalized.total_duration
    if stored.last_end_time != normalized.last_end_time:
        if normalized.last_end_time is None:
            update.clear_last_end_time = True
        else:
            update.last_end_time = normalized.last_end_time
    if stored.segments != normalized.segments:
        update.segments = normalized.segments
    return update


def _is_manual_break(shift: Shift, canonical: ShiftStatus) -> bool:
    # ON BREAKは手動指定のみ。終了済みセグメントだけのACTIVEと矛盾しない間は維持する
    return (
        shift.status == ShiftStatus.ON_BREAK
        and canonical == ShiftStatus.ACTIVE
        and not shift.has_open_segment
    )


async def reconcile(
    shift: Shift,
    now: datetime,
    store: ShiftStore,
    timeout: float = DEFAULT_STORE_TIMEOUT,
    rollover: MidnightRollover = DEFAULT_ROLLOVER,
) -> ReconcileResult:
    """シフトの正規ステータスを求め、保存値と異なれば1回だけ補正する"""
    normalized = normalize_shift(shift)
    classification = classify_detailed(normalized, now, rollover)
    canonical = classification.status

    if canonical == shift.status:
        return ReconcileResult(shift, canonical, False, reason=classification.reason)

    if _is_manual_break(shift, canonical):
        return ReconcileResult(shift, ShiftStatus.ON_BREAK, False, reason="manual_break")

    if classification.failed:
        # 読めないデータから得たフォールバック値は表示のみで保存しない
        return ReconcileResult(
            shift, canonical, False, classification.error, classification.reason
        )

    update = _corrective_update(shift, normalized, canonical)
    logger.info(
        "シフト%sのステータスを補正します: %s → %s（%s）",
        shift.shift_id,
        status_to_wire(shift.status),
        status_to_wire(canonical),
        classification.reason,
    )

    try:
        await _write_with_timeout(store, shift.shift_id, update, timeout)
    except StoreError as e:
        logger.warning("シフト%sの補正を保存できませんでした: %s", shift.shift_id, e)
        return ReconcileResult(shift, canonical, False, e, classification.reason)

    return ReconcileResult(
        replace(normalized, status=canonical), canonical, True, reason=classification.reason
    )


async def load_shift(
    store: ShiftStore,
    employee_id: str,
    shift_date: Union[date, str],
    timeout: float = DEFAULT_STORE_TIMEOUT,
) -> Optional[Shift]:
    """タイムアウト付きでシフトを1件読み込む"""
    try:
        return await asyncio.wait_for(store.get_shift(employee_id, shift_date), timeout)
    except asyncio.TimeoutError as e:
        raise StoreTimeout(f"シフトの読み込みが{timeout}秒以内に完了しませんでした") from e


async def reconcile_shifts(
    store: ShiftStore,
    now: datetime,
    employee_id: Optional[str] = None,
    date_range: Optional[DateRange] = None,
    timeout: float = DEFAULT_STORE_TIMEOUT,
    rollover: MidnightRollover = DEFAULT_ROLLOVER,
) -> list[ReconcileResult]:
    """一覧取得したシフトをそれぞれ独立に突き合わせる（管理画面の一括表示用）

    一覧取得自体の失敗はStoreErrorとして呼び出し元に返す。
    """
    try:
        shifts = await asyncio.wait_for(store.list_shifts(employee_id, date_range), timeout)
    except asyncio.TimeoutError as e:
        raise StoreTimeout(f"シフト一覧の取得が{timeout}秒以内に完了しませんでした") from e

    results = await asyncio.gather(
        *(reconcile(shift, now, store, timeout, rollover) for shift in shifts)
    )
    return list(results)


async def mark_on_break(
    shift: Shift,
    now: datetime,
    store: ShiftStore,
    timeout: float = DEFAULT_STORE_TIMEOUT,
    rollover: MidnightRollover = DEFAULT_ROLLOVER,
) -> ReconcileResult:
    """手動でON BREAKにする。全セグメント終了済みの当日ACTIVEシフトのみ可"""
    classification = classify_detailed(normalize_shift(shift), now, rollover)
    if classification.failed:
        raise classification.error
    if classification.status != ShiftStatus.ACTIVE or shift.has_open_segment:
        raise StatusCalculationError(
            f"シフト{shift.shift_id}は休憩中にできません（現在: {classification.status.value}）"
        )

    if shift.status == ShiftStatus.ON_BREAK:
        return ReconcileResult(shift, ShiftStatus.ON_BREAK, False, reason="manual_break")

    try:
        await _write_with_timeout(
            store, shift.shift_id, ShiftUpdate(status=ShiftStatus.ON_BREAK), timeout
        )
    except StoreError as e:
        logger.warning("シフト%sを休憩中にできませんでした: %s", shift.shift_id, e)
        return ReconcileResult(shift, classification.status, False, e, classification.reason)

    return ReconcileResult(
        shift.with_status(ShiftStatus.ON_BREAK), ShiftStatus.ON_BREAK, True, reason="manual_break"
    )
