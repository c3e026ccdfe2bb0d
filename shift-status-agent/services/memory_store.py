import json
import logging
from datetime import date
from pathlib import Path
from typing import Iterator, Optional, Union

from services.errors import InvalidDate, StoreError
from services.shift_models import Shift, ShiftUpdate
from services.store_interface import DateRange, ShiftStore
from services.time_compare import parse_shift_date
from services.wire_format import shift_from_record

logger = logging.getLogger(__name__)


def _shift_date_or_none(shift: Shift) -> Optional[date]:
    try:
        return parse_shift_date(shift.date)
    except InvalidDate:
        return None


class InMemoryShiftStore(ShiftStore):
    """メモリ上のシフトストア。ローカル実行・テスト用の仮実装"""

    def __init__(self, shifts: list[Shift] = None):
        self._shifts: dict[str, Shift] = {}
        self.writes: list[tuple[str, ShiftUpdate]] = []
        for shift in shifts or []:
            self.add(shift)

    @classmethod
    def from_json_file(cls, path: str) -> "InMemoryShiftStore":
        """シフト記録のJSON配列ファイルから初期データを読み込む"""
        with open(Path(path), "r", encoding="utf-8") as f:
            records = json.load(f)
        store = cls([shift_from_record(record) for record in records])
        logger.info("シフト%d件を読み込みました: %s", len(store._shifts), path)
        return store

    def add(self, shift: Shift) -> None:
        self._shifts[shift.shift_id] = shift

    def snapshot(self, shift_id: str) -> Optional[Shift]:
        return self._shifts.get(shift_id)

    async def get_shift(
        self, employee_id: str, shift_date: Union[date, str]
    ) -> Optional[Shift]:
        target = parse_shift_date(shift_date)
        # 同じ従業員・日付が複数あれば最後に登録されたものを返す
        for shift in reversed(list(self._shifts.values())):
            if shift.employee_id == employee_id and _shift_date_or_none(shift) == target:
                return shift
        return None

    async def list_shifts(
        self,
        employee_id: Optional[str] = None,
        date_range: Optional[DateRange] = None,
    ) -> Iterator[Shift]:
        shifts = list(self._shifts.values())
        return (shift for shift in shifts if self._matches(shift, employee_id, date_range))

    @staticmethod
    def _matches(
        shift: Shift, employee_id: Optional[str], date_range: Optional[DateRange]
    ) -> bool:
        if employee_id is not None and shift.employee_id != employee_id:
            return False
        if date_range is not None:
            shift_date = _shift_date_or_none(shift)
            if shift_date is None:
                return False
            start, end = date_range
            return start <= shift_date <= end
        return True

    async def write_shift_update(self, shift_id: str, update: ShiftUpdate) -> None:
        shift = self._shifts.get(shift_id)
        if shift is None:
            raise StoreError(f"シフトが見つかりません: {shift_id}")
        self._shifts[shift_id] = update.apply_to(shift)
        self.writes.append((shift_id, update))

    async def close(self) -> None:
        pass
