from graph.state import ShiftCheckState
from services.config_loader import DEFAULT_CONFIG


MESSAGES = {
    "corrected": "🔄 シフト{shift_id}（{employee_id}）のステータスを{previous}から{status}に補正しました",
}


def notify_node(state: ShiftCheckState, notifier=None, app_config: dict = None) -> dict:
    """同期失敗・補正結果を通知するノード"""
    config = app_config or DEFAULT_CONFIG
    action = state["action_taken"]

    if action in ("error", "sync_failed"):
        notifier.send_error(state["error_message"])
        return {}

    if action == "corrected" and config["slack"]["notify_corrections"]:
        msg = MESSAGES["corrected"].format(
            shift_id=state["shift"].shift_id,
            employee_id=state["employee_id"],
            previous=state["extra"].get("previous_status"),
            status=state["status"],
        )
        notifier.send(msg)

    return {}
