import pytest
import pytz
from datetime import date, datetime

from services.errors import InvalidDate, InvalidTimeFormat
from services.shift_models import Segment
from services.time_compare import (
    MidnightRollover,
    combine,
    format_hhmm,
    instant_is_after,
    instant_is_before,
    is_after,
    is_before,
    parse_hhmm,
    parse_shift_date,
    segment_timeline,
)


def test_parse_hhmm():
    """HH:MMを0時からの経過分に変換できること"""
    assert parse_hhmm("00:00") == 0
    assert parse_hhmm("09:30") == 570
    assert parse_hhmm("9:05") == 545
    assert parse_hhmm("23:59") == 1439


@pytest.mark.parametrize("value", ["24:00", "12:60", "ab:cd", "1230", "", "09:3", None, 930])
def test_parse_hhmm_invalid(value):
    """不正な時刻はInvalidTimeFormatになること"""
    with pytest.raises(InvalidTimeFormat):
        parse_hhmm(value)


def test_format_hhmm_wraps_day():
    """1日を超える分数は0時起点に戻して表示すること"""
    assert format_hhmm(1293) == "21:33"
    assert format_hhmm(1441) == "00:01"


def test_is_after_same_day():
    """同日内の単純比較"""
    assert is_after("21:48", "21:33") is True
    assert is_after("21:32", "21:33") is False
    assert is_after("21:33", "21:33") is False


def test_is_after_cross_midnight():
    """深夜0〜4時と18時以降の組み合わせは翌日扱いで比較すること"""
    assert is_after("00:01", "21:33") is True
    assert is_after("03:59", "18:00") is True


def test_is_after_no_adjustment_for_daytime_reference():
    """参照時刻が18時前なら補正しないこと"""
    assert is_after("00:01", "09:30") is False
    assert is_before("00:01", "09:30") is True


def test_is_before_boundary():
    """4時ちょうどは補正対象外"""
    assert is_before("03:59", "18:00") is False
    assert is_before("04:00", "18:00") is True


def test_custom_rollover():
    """境界時刻を変更できること"""
    rollover = MidnightRollover(early_morning_end_hour=6, late_evening_start_hour=20)
    assert is_after("05:00", "20:00", rollover) is True
    assert is_after("05:00", "19:00", rollover) is False


def test_comparator_rejects_malformed():
    """比較関数も不正な時刻でInvalidTimeFormatを送出すること"""
    with pytest.raises(InvalidTimeFormat):
        is_after("25:00", "10:00")
    with pytest.raises(InvalidTimeFormat):
        is_before("10:00", "xx")


def test_parse_shift_date():
    """日付文字列・ISO日時文字列・dateを受け付けること"""
    assert parse_shift_date("2026-10-17") == date(2026, 10, 17)
    assert parse_shift_date("2025-10-21T00:00:00.000Z") == date(2025, 10, 21)
    assert parse_shift_date(date(2026, 1, 2)) == date(2026, 1, 2)
    assert parse_shift_date(datetime(2026, 1, 2, 9, 0)) == date(2026, 1, 2)


@pytest.mark.parametrize("value", ["21/10/2025", "", "2026-13-01", None])
def test_parse_shift_date_invalid(value):
    """不正な日付はInvalidDateになること"""
    with pytest.raises(InvalidDate):
        parse_shift_date(value)


def test_combine_and_instant_comparison():
    """日付と時刻をまとめた日時で比較できること"""
    assert combine(date(2026, 10, 17), "21:33") == datetime(2026, 10, 17, 21, 33)
    assert instant_is_after(datetime(2026, 10, 18, 0, 1), "2026-10-17", "21:33") is True
    assert instant_is_before(datetime(2026, 10, 17, 0, 1), "2026-10-17", "09:30") is True


def test_instant_comparison_with_aware_now():
    """タイムゾーン付きの現在時刻は壁時計の値で比較すること"""
    now = pytz.timezone("Europe/London").localize(datetime(2026, 10, 17, 22, 0))
    assert instant_is_after(now, date(2026, 10, 17), "21:33") is True


def test_segment_timeline_overnight():
    """夜勤セグメントは翌日分の分数として並ぶこと"""
    segments = [
        Segment(1, "22:00", "02:00"),
        Segment(2, "03:00", "05:00"),
    ]
    assert segment_timeline(segments) == [(1320, 1560), (1620, 1740)]


def test_segment_timeline_open_segment():
    """未終了セグメントは終了がNoneになること"""
    segments = [
        Segment(1, "09:00", "12:00"),
        Segment(2, "13:00"),
    ]
    assert segment_timeline(segments) == [(540, 720), (780, None)]
