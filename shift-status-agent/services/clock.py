from datetime import datetime

import pytz


def _utcnow() -> datetime:
    """テスト時にモック可能"""
    return datetime.now(pytz.UTC)


def current_time(timezone_name: str = "Europe/London") -> datetime:
    """指定タイムゾーンの現在時刻を壁時計の値（naive）で返す"""
    tz = pytz.timezone(timezone_name)
    return _utcnow().astimezone(tz).replace(tzinfo=None)
