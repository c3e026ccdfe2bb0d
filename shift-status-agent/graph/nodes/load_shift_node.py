# graph/nodes/load_shift_node.py
from graph.state import ShiftCheckState
from services.config_loader import DEFAULT_CONFIG
from services.errors import ShiftStatusError
from services.reconciler import load_shift
from services.store_interface import ShiftStore


async def load_shift_node(
    state: ShiftCheckState,
    shift_store: ShiftStore = None,
    app_config: dict = None,
) -> dict:
    """ストアから対象従業員・日付のシフトを読み込むノード"""
    config = app_config or DEFAULT_CONFIG
    timeout = config["store"]["timeout_seconds"]

    try:
        shift = await load_shift(shift_store, state["employee_id"], state["shift_date"], timeout)
    except ShiftStatusError as e:
        return {"shift": None, "action_taken": "error", "error_message": str(e)}

    if shift is None:
        return {"shift": None, "action_taken": "not_found", "error_message": None}

    return {"shift": shift, "action_taken": None, "error_message": None}
