class ShiftStatusError(Exception):
    """シフトステータス処理の基底例外"""


class InvalidTimeFormat(ShiftStatusError, ValueError):
    """HH:MM形式として解釈できない時刻"""


class InvalidDate(ShiftStatusError, ValueError):
    """YYYY-MM-DD形式として解釈できないシフト日付"""


class InvalidSegments(ShiftStatusError, ValueError):
    """セグメント構成の矛盾（未終了セグメントが複数など）"""


class StatusCalculationError(ShiftStatusError):
    """ステータス判定中の内部エラー"""


class StoreError(ShiftStatusError):
    """永続化ストアとのI/Oエラー"""


class StoreTimeout(StoreError):
    """永続化ストアの応答タイムアウト"""
