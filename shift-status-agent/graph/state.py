from typing import TypedDict, Optional
from datetime import datetime

from services.shift_models import Shift


class ShiftCheckState(TypedDict):
    employee_id: str                    # 従業員ID
    shift_date: str                     # YYYY-MM-DD
    now: datetime                       # 判定基準の現在時刻（壁時計）
    shift: Optional[Shift]              # 読み込んだ／補正後のシフト
    status: Optional[str]               # 表示用ステータス
    corrected: bool                     # 補正書き込みが成功したか
    action_taken: Optional[str]         # "not_found" / "in_sync" / "corrected" / "sync_failed" / "error"
    error_message: Optional[str]        # エラー詳細
    extra: dict                         # 任意の追加データ
