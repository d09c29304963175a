"""Graph assembly: builds and compiles the one-turn chat graph."""

from langgraph.graph import StateGraph, START, END

from graph.state import TurnState
from graph.router import router, NODE_NAMES
from graph.chat_nodes import (
    greeting_node,
    ask_name_node,
    ask_loan_purpose_node,
    show_loan_types_node,
    ask_loan_amount_node,
    eligibility_check_node,
    show_lenders_node,
    document_upload_node,
    kyc_ready_node,
    report_generated_node,
    fallback_node,
)

NODE_FUNCTIONS = {
    "greeting": greeting_node,
    "ask_name": ask_name_node,
    "ask_loan_purpose": ask_loan_purpose_node,
    "show_loan_types": show_loan_types_node,
    "ask_loan_amount": ask_loan_amount_node,
    "eligibility_check": eligibility_check_node,
    "show_lenders": show_lenders_node,
    "document_upload": document_upload_node,
    "kyc_ready": kyc_ready_node,
    "report_generated": report_generated_node,
    "fallback": fallback_node,
}


def build_graph():
    """
    Assemble the chat graph: START → router → exactly one step node → END.
    Compiled without a checkpointer; the session store owns persistence.
    """
    builder = StateGraph(TurnState)

    # ── Register step nodes ─────────────────────────────────────────
    for node_name in NODE_NAMES:
        builder.add_node(node_name, NODE_FUNCTIONS[node_name])

    # ── Entry: route on the session's current step ──────────────────
    builder.add_conditional_edges(START, router, NODE_NAMES)

    # ── Every node finishes the turn ────────────────────────────────
    for node_name in NODE_NAMES:
        builder.add_edge(node_name, END)

    return builder.compile()
