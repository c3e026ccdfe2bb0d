import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from services.errors import InvalidDate, InvalidTimeFormat
from services.shift_models import Segment

MINUTES_PER_DAY = 24 * 60

_HHMM_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(frozen=True)
class MidnightRollover:
    """日付跨ぎ補正の境界

    current時刻がearly_morning_end_hour時より前、かつ参照時刻が
    late_evening_start_hour時以降の場合、currentを翌日の時刻として扱う。
    """

    early_morning_end_hour: int = 4
    late_evening_start_hour: int = 18

    def is_early_morning(self, current_minutes: int) -> bool:
        return current_minutes // 60 < self.early_morning_end_hour

    def applies(self, current_minutes: int, reference_minutes: int) -> bool:
        return (
            self.is_early_morning(current_minutes)
            and reference_minutes // 60 >= self.late_evening_start_hour
        )


DEFAULT_ROLLOVER = MidnightRollover()


def parse_hhmm(value: str) -> int:
    """HH:MM形式の文字列を0時からの経過分に変換"""
    if not isinstance(value, str):
        raise InvalidTimeFormat(f"時刻が文字列ではありません: {value!r}")

    match = _HHMM_PATTERN.match(value.strip())
    if match is None:
        raise InvalidTimeFormat(f"HH:MM形式ではありません: {value!r}")

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidTimeFormat(f"時刻が範囲外です: {value!r}")
    return hour * 60 + minute


def format_hhmm(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_of(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def parse_shift_date(value: Union[date, str]) -> date:
    """シフト日付をdateに変換。Apps Scriptが返すISO日時文字列も受け付ける"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(f"日付が文字列ではありません: {value!r}")

    text = value.strip()
    if len(text) > 10 and text[10] == "T":
        text = text[:10]
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise InvalidDate(f"YYYY-MM-DD形式ではありません: {value!r}") from e


def _adjusted_minutes(
    current: str, reference: str, rollover: MidnightRollover
) -> tuple[int, int]:
    current_minutes = parse_hhmm(current)
    reference_minutes = parse_hhmm(reference)
    if rollover.applies(current_minutes, reference_minutes):
        current_minutes += MINUTES_PER_DAY
    return current_minutes, reference_minutes


def is_after(
    current: str, reference: str, rollover: MidnightRollover = DEFAULT_ROLLOVER
) -> bool:
    """currentがreferenceより後か（日付跨ぎ補正あり）"""
    current_minutes, reference_minutes = _adjusted_minutes(current, reference, rollover)
    return current_minutes > reference_minutes


def is_before(
    current: str, reference: str, rollover: MidnightRollover = DEFAULT_ROLLOVER
) -> bool:
    """currentがreferenceより前か（日付跨ぎ補正あり）"""
    current_minutes, reference_minutes = _adjusted_minutes(current, reference, rollover)
    return current_minutes < reference_minutes


def combine(shift_date: Union[date, str], hhmm: str) -> datetime:
    """シフト日付とHH:MMを1つの日時にまとめる"""
    midnight = datetime.combine(parse_shift_date(shift_date), time())
    return midnight + timedelta(minutes=parse_hhmm(hhmm))


def _wall_clock(now: datetime) -> datetime:
    # タイムゾーン変換は呼び出し側の責務。ここでは壁時計の値だけを比較する
    return now.replace(tzinfo=None)


def instant_is_after(now: datetime, shift_date: Union[date, str], hhmm: str) -> bool:
    return _wall_clock(now) > combine(shift_date, hhmm)


def instant_is_before(now: datetime, shift_date: Union[date, str], hhmm: str) -> bool:
    return _wall_clock(now) < combine(shift_date, hhmm)


def segment_timeline(segments: list[Segment]) -> list[tuple[int, Optional[int]]]:
    """セグメントの開始・終了をシフト日0時からの経過分に並べ直す

    時系列順に見て時刻が前より小さくなるたびに1日分を加算するため、
    夜勤セグメントや0時以降のセグメントも単調増加の値になる。
    """
    timeline: list[tuple[int, Optional[int]]] = []
    offset = 0
    previous: Optional[int] = None

    for seg in segments:
        start = parse_hhmm(seg.start_time) + offset
        if previous is not None and start < previous:
            offset += MINUTES_PER_DAY
            start += MINUTES_PER_DAY

        end: Optional[int] = None
        if seg.end_time is not None:
            end = parse_hhmm(seg.end_time) + offset
            if end < start:
                offset += MINUTES_PER_DAY
                end += MINUTES_PER_DAY
            previous = end
        else:
            previous = start

        timeline.append((start, end))

    return timeline
