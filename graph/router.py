"""Deterministic router — NO LLM calls, pure rule-based dispatch on the current step."""

from graph.state import ChatStep, TurnState

FALLBACK_NODE = "fallback"

# Mapping: step → node name
STEP_NODE_MAP: dict[ChatStep, str] = {
    ChatStep.GREETING: "greeting",
    ChatStep.ASK_NAME: "ask_name",
    ChatStep.ASK_LOAN_PURPOSE: "ask_loan_purpose",
    ChatStep.SHOW_LOAN_TYPES: "show_loan_types",
    ChatStep.ASK_LOAN_AMOUNT: "ask_loan_amount",
    ChatStep.ELIGIBILITY_CHECK: "eligibility_check",
    ChatStep.SHOW_LENDERS: "show_lenders",
    ChatStep.DOCUMENT_UPLOAD: "document_upload",
    ChatStep.KYC_COLLECTION: "document_upload",
    ChatStep.KYC_READY: "kyc_ready",
    ChatStep.REPORT_GENERATED: "report_generated",
}

NODE_NAMES: list[str] = sorted(set(STEP_NODE_MAP.values())) + [FALLBACK_NODE]


def router(state: TurnState) -> str:
    """Pick the one node that handles this turn. Called from START."""
    return STEP_NODE_MAP.get(state["step"], FALLBACK_NODE)
