# graph/graph.py
from langgraph.graph import StateGraph, END
from graph.state import ShiftCheckState


def route_after_load(state: ShiftCheckState) -> str:
    if state["action_taken"] == "error":
        return "notify"
    if state["shift"] is None:
        return "end"
    return "reconcile"


def build_graph(store=None, notifier=None, config=None):
    """LangGraphのグラフを構築して返す

    読み込み → 突き合わせ → 通知 の順に1シフト分のチェックを行う。
    各ノード関数はサービス依存を持つため、functools.partialでラップして
    LangGraphが期待する (state) -> dict シグネチャに合わせる。
    """
    from functools import partial
    from graph.nodes.load_shift_node import load_shift_node
    from graph.nodes.reconcile_node import reconcile_node
    from graph.nodes.notify_node import notify_node

    load_wrapped = partial(load_shift_node, shift_store=store, app_config=config)
    reconcile_wrapped = partial(reconcile_node, shift_store=store, app_config=config)
    notify_wrapped = partial(notify_node, notifier=notifier, app_config=config)

    workflow = StateGraph(ShiftCheckState)

    workflow.add_node("load_shift", load_wrapped)
    workflow.add_node("reconcile", reconcile_wrapped)
    workflow.add_node("notify", notify_wrapped)

    workflow.set_entry_point("load_shift")

    workflow.add_conditional_edges(
        "load_shift",
        route_after_load,
        {"reconcile": "reconcile", "notify": "notify", "end": END},
    )

    workflow.add_edge("reconcile", "notify")
    workflow.add_edge("notify", END)

    return workflow.compile()
