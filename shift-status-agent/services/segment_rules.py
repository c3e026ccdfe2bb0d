from services.errors import InvalidSegments, InvalidTimeFormat
from services.shift_models import Segment
from services.time_compare import MINUTES_PER_DAY, parse_hhmm


def check_segments(segments: list[Segment]) -> None:
    """ステータス判定の前提となるセグメント構成を検証する

    全時刻がHH:MMとして読めること、未終了セグメントは最大1つで
    かつ最後のセグメントであること。違反時はInvalidTimeFormat/InvalidSegments。
    """
    open_indexes = []
    for index, seg in enumerate(segments):
        parse_hhmm(seg.start_time)
        if seg.is_open:
            open_indexes.append(index)
        else:
            parse_hhmm(seg.end_time)

    if len(open_indexes) > 1:
        raise InvalidSegments(f"未終了のセグメントが{len(open_indexes)}件あります")
    if open_indexes and open_indexes[0] != len(segments) - 1:
        raise InvalidSegments("未終了のセグメントの後に別のセグメントがあります")


def _raw_interval(seg: Segment) -> tuple[int, int]:
    start = parse_hhmm(seg.start_time)
    end = parse_hhmm(seg.end_time)
    if end < start:
        end += MINUTES_PER_DAY
    return start, end


def validate_segments(segments: list[Segment]) -> list[str]:
    """入力チェック用の警告メッセージ一覧（ステータス判定には使わない）"""
    errors = []
    closed = [(index, seg) for index, seg in enumerate(segments, start=1) if not seg.is_open]

    intervals = {}
    for index, seg in closed:
        try:
            start, end = _raw_interval(seg)
        except InvalidTimeFormat as e:
            errors.append(f"セグメント{index}: {e}")
            continue
        if end - start <= 0 or end - start >= MINUTES_PER_DAY:
            errors.append(f"セグメント{index}: 時間範囲が不正です（24時間以内で指定してください）")
        intervals[index] = (start, end)

    indexes = sorted(intervals)
    for pos, i in enumerate(indexes):
        for j in indexes[pos + 1:]:
            start1, end1 = intervals[i]
            start2, end2 = intervals[j]
            if start1 < end2 and end1 > start2:
                errors.append(f"セグメント{i}と{j}が重複しています")

    return errors
