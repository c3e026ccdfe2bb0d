from abc import ABC, abstractmethod
from datetime import date
from typing import Iterator, Optional, Union

from services.shift_models import Shift, ShiftUpdate

DateRange = tuple[date, date]


class ShiftStore(ABC):
    """シフト永続化ストアの抽象インターフェース"""

    @abstractmethod
    async def get_shift(
        self, employee_id: str, shift_date: Union[date, str]
    ) -> Optional[Shift]:
        """従業員・日付のシフトを取得（存在しなければNone）"""
        ...

    @abstractmethod
    async def list_shifts(
        self,
        employee_id: Optional[str] = None,
        date_range: Optional[DateRange] = None,
    ) -> Iterator[Shift]:
        """条件に合うシフトを順に返すイテレータ（1回だけ走査可能）"""
        ...

    @abstractmethod
    async def write_shift_update(self, shift_id: str, update: ShiftUpdate) -> None:
        """1回の原子的な部分更新。失敗時はStoreError"""
        ...

    @abstractmethod
    async def close(self) -> None:
        """リソース解放"""
        ...
