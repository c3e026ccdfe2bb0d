"""シフト記録のワイヤー形式

セグメントはJSON配列 ``[{"segmentId", "startTime", "endTime", "duration"}]``、
ステータスは DRAFT / OFFLINE / ACTIVE / ON BREAK / COMPLETED の文字列、
日付は YYYY-MM-DD、時刻は24時間表記の HH:MM（タイムゾーン表記なし）。

シフト記録はAPIのcamelCase形式と、スプレッドシートの列見出しをキーにした
行形式のどちらからでも読み込める。
"""
import json
from datetime import date
from typing import Any, Optional, Union

from services.errors import InvalidDate, InvalidSegments
from services.shift_models import Segment, Shift, ShiftStatus, ShiftUpdate
from services.time_compare import parse_shift_date


def status_from_wire(value: Any) -> Optional[ShiftStatus]:
    """ステータス文字列を変換。不明な値はNone（次回の補正対象になる）"""
    if isinstance(value, ShiftStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ShiftStatus(value.strip().upper().replace("_", " "))
    except ValueError:
        return None


def status_to_wire(status: Optional[ShiftStatus]) -> Optional[str]:
    return status.value if status is not None else None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def segment_from_dict(item: dict, position: int) -> Segment:
    if not isinstance(item, dict):
        raise InvalidSegments(f"セグメント{position}がオブジェクトではありません: {item!r}")

    raw_id = item.get("segmentId", item.get("id", position))
    try:
        segment_id = int(raw_id)
    except (TypeError, ValueError):
        segment_id = position

    end_time = item.get("endTime")
    return Segment(
        segment_id=segment_id,
        start_time=item.get("startTime"),
        end_time=None if end_time in (None, "") else end_time,
        duration=_optional_float(item.get("duration")),
    )


def segment_to_dict(seg: Segment) -> dict:
    data = {
        "segmentId": seg.segment_id,
        "startTime": seg.start_time,
        "endTime": seg.end_time,
    }
    if seg.duration is not None:
        data["duration"] = seg.duration
    return data


def segments_from_json(value: Union[str, list, None]) -> list[Segment]:
    if value is None:
        return []
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise InvalidSegments(f"セグメントデータがJSONではありません: {e}") from e
    if not isinstance(value, list):
        raise InvalidSegments(f"セグメントデータが配列ではありません: {value!r}")
    return [segment_from_dict(item, position) for position, item in enumerate(value, start=1)]


def segments_to_json(segments: list[Segment]) -> str:
    return json.dumps([segment_to_dict(seg) for seg in segments], ensure_ascii=False)


def _pick(record: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return default


def _shift_date(value: Any) -> Union[date, str]:
    # 解釈できない日付は文字列のまま保持し、判定時にInvalidDateとして扱う
    try:
        return parse_shift_date(value)
    except InvalidDate:
        return str(value)


def shift_from_record(record: dict) -> Shift:
    """APIレスポンスまたはシート行の辞書からShiftを生成する"""
    last_end_time = _pick(record, "lastEndTime", "Last End Time")
    return Shift(
        shift_id=str(_pick(record, "shiftId", "Shift ID", default="")).strip(),
        employee_id=str(_pick(record, "employeeId", "Employee ID", default="")).strip(),
        date=_shift_date(_pick(record, "shiftDate", "date", "Shift Date", default="")),
        segments=segments_from_json(_pick(record, "segments", "Segments Data")),
        status=status_from_wire(_pick(record, "status", "Status")),
        total_duration=_optional_float(_pick(record, "totalDuration", "Total Duration")) or 0.0,
        last_end_time=str(last_end_time) if last_end_time is not None else None,
        employee_name=str(_pick(record, "employeeName", "Employee Name", default="")),
        shift_type=str(_pick(record, "shiftType", "Shift Type", default="")),
    )


def shift_to_record(shift: Shift) -> dict:
    shift_date = shift.date.isoformat() if isinstance(shift.date, date) else shift.date
    return {
        "shiftId": shift.shift_id,
        "employeeId": shift.employee_id,
        "employeeName": shift.employee_name,
        "shiftDate": shift_date,
        "shiftType": shift.shift_type,
        "segments": [segment_to_dict(seg) for seg in shift.segments],
        "status": status_to_wire(shift.status),
        "totalDuration": shift.total_duration,
        "lastEndTime": shift.last_end_time,
    }


def update_to_sheet_fields(update: ShiftUpdate) -> dict:
    """部分更新をシートの列見出しをキーにした辞書にする（updateShiftAsAdminのupdates）

    指定されたフィールドだけを含む。セグメントはJSON文字列として書き込む。
    """
    updates = {}
    if update.status is not None:
        updates["Status"] = status_to_wire(update.status)
    if update.total_duration is not None:
        updates["Total Duration"] = update.total_duration
    if update.last_end_time is not None:
        updates["Last End Time"] = update.last_end_time
    elif update.clear_last_end_time:
        updates["Last End Time"] = ""
    if update.segments is not None:
        updates["Segments Data"] = segments_to_json(update.segments)
        updates["Number of Segments"] = len(update.segments)
    return updates
