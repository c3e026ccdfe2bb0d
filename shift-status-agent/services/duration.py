import logging
import math
from dataclasses import replace
from typing import Optional

from services.errors import InvalidTimeFormat
from services.shift_models import Segment, Shift
from services.time_compare import MINUTES_PER_DAY, parse_hhmm

logger = logging.getLogger(__name__)


def _is_trusted(duration) -> bool:
    """手入力の上書き値として信頼できる所要時間か"""
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        return False
    return math.isfinite(duration) and 0 <= duration < 24


def span_hours(start_time: str, end_time: str) -> float:
    """開始〜終了の時間数（終了が開始より前なら翌日扱い）"""
    minutes = parse_hhmm(end_time) - parse_hhmm(start_time)
    if minutes < 0:
        minutes += MINUTES_PER_DAY
    return round(minutes / 60, 2)


def segment_duration(seg: Segment) -> float:
    """セグメントの所要時間（時間）。未終了セグメントは0"""
    if seg.is_open:
        return 0.0
    if seg.duration is not None and _is_trusted(seg.duration):
        return float(seg.duration)

    try:
        return span_hours(seg.start_time, seg.end_time)
    except InvalidTimeFormat as e:
        logger.warning("セグメント%sの所要時間を計算できません: %s", seg.segment_id, e)
        return 0.0


def total_duration(segments: list[Segment]) -> float:
    """終了済みセグメントの所要時間合計"""
    return round(sum(segment_duration(seg) for seg in segments if not seg.is_open), 2)


def last_end_time(segments: list[Segment]) -> Optional[str]:
    if not segments or segments[-1].is_open:
        return None
    return segments[-1].end_time


def normalize_segment(seg: Segment) -> Segment:
    if seg.is_open or (seg.duration is not None and _is_trusted(seg.duration)):
        return seg
    try:
        hours = span_hours(seg.start_time, seg.end_time)
    except InvalidTimeFormat:
        # 計算できない所要時間は記録しない
        return replace(seg, duration=None)
    return replace(seg, duration=hours)


def normalize_shift(shift: Shift) -> Shift:
    """所要時間・合計・最終終了時刻を導出し直したShiftを返す"""
    segments = [normalize_segment(seg) for seg in shift.segments]
    return replace(
        shift,
        segments=segments,
        total_duration=total_duration(segments),
        last_end_time=last_end_time(segments),
    )
