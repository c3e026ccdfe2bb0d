# schedulers/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from typing import Callable


class ShiftRefreshScheduler:
    """APSchedulerによるシフトステータスの定期突き合わせ"""

    def __init__(self, interval_minutes: int, job_func: Callable):
        self._interval = interval_minutes
        self._job_func = job_func
        self._scheduler = BackgroundScheduler()
        # 前回のチェックが終わる前に次の周期が来ても重ねて実行しない
        self._scheduler.add_job(
            self._job_func,
            trigger=IntervalTrigger(minutes=self._interval),
            id="shift_status_refresh",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def start(self):
        """スケジューラ開始"""
        self._scheduler.start()

    def stop(self):
        """スケジューラ停止"""
        self._scheduler.shutdown(wait=False)
