"""シフトステータス同期エージェント - エントリーポイント"""
import asyncio
import logging
import signal
import sys
import time
from collections import Counter
from datetime import date, datetime

from dotenv import load_dotenv
import os

from services.config_loader import load_config, rollover_from_config
from services.clock import current_time
from services.memory_store import InMemoryShiftStore
from services.reconciler import reconcile_shifts
from services.slack_client import SlackNotifier, ConsoleNotifier
from graph.graph import build_graph
from graph.state import ShiftCheckState
from schedulers.scheduler import ShiftRefreshScheduler

logger = logging.getLogger("shift_agent")


def create_services(config: dict):
    """設定に基づいてサービスインスタンスを生成"""
    load_dotenv()

    # 永続化ストア
    store_config = config["store"]
    if store_config["backend"] == "apps_script":
        from services.apps_script_store import AppsScriptShiftStore
        store = AppsScriptShiftStore(
            url=os.getenv("APPS_SCRIPT_URL", ""),
            client_timezone=config["clock"]["timezone"],
            request_timeout=store_config["timeout_seconds"],
        )
    else:
        seed_path = os.getenv("SHIFT_STORE_SEED_PATH", store_config.get("seed_path", ""))
        if seed_path:
            store = InMemoryShiftStore.from_json_file(seed_path)
        else:
            store = InMemoryShiftStore()

    # Slack通知
    slack_config = config["slack"]
    slack_token = os.getenv("SLACK_BOT_TOKEN", "")
    slack_channel = os.getenv("SLACK_NOTIFY_CHANNEL", slack_config.get("notify_channel", ""))
    if slack_config["enabled"] and slack_token:
        notifier = SlackNotifier(token=slack_token, channel=slack_channel)
    else:
        notifier = ConsoleNotifier()

    return store, notifier


def _initial_state(employee_id: str, shift_date: date, now: datetime) -> ShiftCheckState:
    return {
        "employee_id": employee_id,
        "shift_date": shift_date.isoformat(),
        "now": now,
        "shift": None,
        "status": None,
        "corrected": False,
        "action_taken": None,
        "error_message": None,
        "extra": {},
    }


async def _check_watched(graph, employee_ids: list[str], today: date, now: datetime) -> list[dict]:
    """監視対象の従業員ごとに、当日シフトのチェックグラフを独立に実行"""
    return await asyncio.gather(
        *(graph.ainvoke(_initial_state(employee_id, today, now)) for employee_id in employee_ids)
    )


async def _check_all(store, notifier, config: dict, today: date, now: datetime) -> list[str]:
    """当日の全シフトを一括で突き合わせる"""
    results = await reconcile_shifts(
        store,
        now,
        date_range=(today, today),
        timeout=config["store"]["timeout_seconds"],
        rollover=rollover_from_config(config),
    )
    for result in results:
        if result.action in ("error", "sync_failed"):
            notifier.send_error(f"シフト{result.shift.shift_id}: {result.error}")
    return [result.action for result in results]


def run_check(graph, store, notifier, config: dict) -> Counter:
    """1回分のチェックを実行し、結果種別ごとの件数を返す"""
    now = current_time(config["clock"]["timezone"])
    today = now.date()
    employee_ids = config["watch"]["employee_ids"]

    if employee_ids:
        states = asyncio.run(_check_watched(graph, employee_ids, today, now))
        summary = Counter(state["action_taken"] for state in states)
    else:
        summary = Counter(asyncio.run(_check_all(store, notifier, config, today, now)))

    logger.info("チェック完了（%s）: %s", now.strftime("%Y-%m-%d %H:%M"), dict(summary))
    return summary


def main():
    """メイン起動処理"""
    config = load_config("config.yaml")
    logging.basicConfig(
        level=config["logging"]["level"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store, notifier = create_services(config)
    graph = build_graph(store=store, notifier=notifier, config=config)

    # スケジューラ設定
    interval = config["scheduler"]["check_interval_minutes"]

    def check_job():
        try:
            run_check(graph, store, notifier, config)
        except Exception as e:
            logger.exception("チェック中にエラー")
            notifier.send_error(str(e))

    scheduler = ShiftRefreshScheduler(interval_minutes=interval, job_func=check_job)
    scheduler.start()
    logger.info("%s分間隔でシフトステータスのチェックを開始します", interval)

    # 起動直後に1回チェック
    check_job()

    # シグナルハンドリング
    def shutdown(signum, frame):
        logger.info("停止中...")
        scheduler.stop()
        asyncio.run(store.close())
        logger.info("停止しました")
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    # メインループ
    logger.info("Ctrl+Cで停止します")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        shutdown(None, None)


if __name__ == "__main__":
    main()
