# graph/nodes/reconcile_node.py
import logging

from graph.state import ShiftCheckState
from services.config_loader import DEFAULT_CONFIG, rollover_from_config
from services.reconciler import reconcile
from services.segment_rules import validate_segments
from services.store_interface import ShiftStore
from services.wire_format import status_to_wire

logger = logging.getLogger(__name__)


async def reconcile_node(
    state: ShiftCheckState,
    shift_store: ShiftStore = None,
    app_config: dict = None,
) -> dict:
    """正規ステータスを判定し、保存値と異なれば補正するノード"""
    config = app_config or DEFAULT_CONFIG
    shift = state["shift"]

    result = await reconcile(
        shift,
        state["now"],
        shift_store,
        timeout=config["store"]["timeout_seconds"],
        rollover=rollover_from_config(config),
    )

    extra = dict(state.get("extra") or {})
    extra["previous_status"] = status_to_wire(shift.status)
    extra["reason"] = result.reason

    # 入力内容の警告（判定には使わない）
    warnings = validate_segments(shift.segments)
    if warnings:
        logger.warning("シフト%sのセグメントに問題があります: %s", shift.shift_id, " / ".join(warnings))
    extra["segment_warnings"] = warnings

    return {
        "shift": result.shift,
        "status": result.status.value,
        "corrected": result.corrected,
        "action_taken": result.action,
        "error_message": str(result.error) if result.error is not None else None,
        "extra": extra,
    }
