import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from services.errors import (
    InvalidDate,
    InvalidSegments,
    InvalidTimeFormat,
    StatusCalculationError,
)
from services.segment_rules import check_segments
from services.shift_models import Segment, Shift, ShiftStatus
from services.time_compare import (
    DEFAULT_ROLLOVER,
    MINUTES_PER_DAY,
    MidnightRollover,
    minutes_of,
    parse_shift_date,
    segment_timeline,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Classification:
    status: ShiftStatus
    reason: str                                     # 判定理由（ログ・デバッグ用）
    error: Optional[StatusCalculationError] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def classify(
    shift: Shift, now: datetime, rollover: MidnightRollover = DEFAULT_ROLLOVER
) -> ShiftStatus:
    """(segments, date, now) からシフトの正規ステータスを求める"""
    return classify_detailed(shift, now, rollover).status


def classify_detailed(
    shift: Shift, now: datetime, rollover: MidnightRollover = DEFAULT_ROLLOVER
) -> Classification:
    """判定理由と判定エラー付きでステータスを求める。例外は送出しない"""
    try:
        return _classify(shift, now, rollover)
    except (InvalidTimeFormat, InvalidDate, InvalidSegments) as e:
        return _fallback(shift, e)
    except Exception as e:
        logger.exception("シフト%sのステータス判定で予期しないエラー", shift.shift_id)
        return _fallback(shift, e)


def _fallback(shift: Shift, cause: Exception) -> Classification:
    error = StatusCalculationError(
        f"シフト{shift.shift_id}のステータスを判定できません: {cause}"
    )
    error.__cause__ = cause
    logger.warning("%s（DRAFTとして扱います）", error)
    return Classification(ShiftStatus.DRAFT, "fallback", error)


def _classify(shift: Shift, now: datetime, rollover: MidnightRollover) -> Classification:
    if not shift.segments:
        return Classification(ShiftStatus.DRAFT, "no_segments")

    shift_date = parse_shift_date(shift.date)
    today = now.date()

    # 未来日のシフトはセグメント内容に関係なくDRAFT
    if shift_date > today:
        return Classification(ShiftStatus.DRAFT, "future_date")

    check_segments(shift.segments)

    # 過去日のシフトはACTIVE/OFFLINEにならない
    if shift_date < today:
        return Classification(ShiftStatus.COMPLETED, "past_date")

    return _classify_today(shift.segments, minutes_of(now), rollover)


def _classify_today(
    segments: list[Segment], current: int, rollover: MidnightRollover
) -> Classification:
    timeline = segment_timeline(segments)
    first_start = timeline[0][0]
    last_start, last_end = timeline[-1]

    reference = last_end if last_end is not None else last_start
    if reference >= MINUTES_PER_DAY:
        # 日付を跨ぐシフトでは早朝の現在時刻を翌日側の時刻として比較する
        if rollover.is_early_morning(current):
            current += MINUTES_PER_DAY
    elif rollover.applies(current, reference):
        current += MINUTES_PER_DAY

    if current < first_start:
        return Classification(ShiftStatus.OFFLINE, "before_start")

    if any(seg.is_open for seg in segments):
        return Classification(ShiftStatus.ACTIVE, "open_segment")

    if current > last_end:
        return Classification(ShiftStatus.COMPLETED, "after_end")

    for (_, prev_end), (next_start, _) in zip(timeline, timeline[1:]):
        if prev_end < current < next_start:
            return Classification(ShiftStatus.ACTIVE, "gap")

    return Classification(ShiftStatus.ACTIVE, "within_shift")
