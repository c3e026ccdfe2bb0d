from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Optional, Union


class ShiftStatus(str, Enum):
    DRAFT = "DRAFT"
    OFFLINE = "OFFLINE"
    ACTIVE = "ACTIVE"
    ON_BREAK = "ON BREAK"
    COMPLETED = "COMPLETED"


@dataclass
class Segment:
    """出勤〜退勤の1区間。end_timeがNoneなら作業中（未終了）"""

    segment_id: int
    start_time: str                     # HH:MM
    end_time: Optional[str] = None      # HH:MM
    duration: Optional[float] = None    # 時間単位

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass
class Shift:
    """従業員1人・1日分のシフト記録

    statusは(segments, date, now)から再計算できるキャッシュ値であり、
    独立した状態として扱わない。
    """

    shift_id: str
    employee_id: str
    date: Union[date, str]              # date または YYYY-MM-DD
    segments: list[Segment] = field(default_factory=list)
    status: Optional[ShiftStatus] = ShiftStatus.DRAFT
    total_duration: float = 0.0
    last_end_time: Optional[str] = None
    employee_name: str = ""
    shift_type: str = ""

    @property
    def has_open_segment(self) -> bool:
        return any(seg.is_open for seg in self.segments)

    def with_status(self, status: ShiftStatus) -> "Shift":
        return replace(self, status=status)


@dataclass
class ShiftUpdate:
    """1回の原子的な部分更新。Noneのフィールドはストア側で変更しない"""

    status: Optional[ShiftStatus] = None
    total_duration: Optional[float] = None
    last_end_time: Optional[str] = None
    segments: Optional[list[Segment]] = None
    clear_last_end_time: bool = False   # 最終セグメントが未終了に戻った場合

    def apply_to(self, shift: Shift) -> Shift:
        """更新内容を適用した新しいShiftを返す"""
        changes = {}
        if self.status is not None:
            changes["status"] = self.status
        if self.total_duration is not None:
            changes["total_duration"] = self.total_duration
        if self.last_end_time is not None:
            changes["last_end_time"] = self.last_end_time
        elif self.clear_last_end_time:
            changes["last_end_time"] = None
        if self.segments is not None:
            changes["segments"] = list(self.segments)
        return replace(shift, **changes)
