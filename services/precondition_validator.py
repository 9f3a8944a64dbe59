# services/precondition_validator.py
from loguru import logger

from commands.registry import CapabilityRegistry
from schemas.context import ContextSnapshot
from schemas.intent import IntentResult

# 사용자에게 부족한 정보를 안내하기 위한 설명
CONTEXT_HINTS = {
    "references": "a {kind} must be referenced (e.g. @[{kind} name]) or open",
    "page": "the current page must be known",
    "user": "the user profile must be available",
}


def describe_context(field: str, kind) -> str:
    return CONTEXT_HINTS.get(field, field).format(kind=kind or "content item")


def validate_preconditions(
    result: IntentResult,
    snapshot: ContextSnapshot,
    registry: CapabilityRegistry,
) -> IntentResult:
    """
    분류가 끝난 뒤 마지막으로 한 번 더 확인하는 게이트
    - capability가 등록되어 있는지
    - required_context가 스냅샷에서 충족되는지
    - 필수 인자가 모두 있는지
    하나라도 실패하면 "none"으로 덮어쓴다.
    """
    if result.is_none:
        return result

    capability = registry.get(result.intent)
    if capability is None:
        logger.warning(f"Unknown capability '{result.intent}' reached the validator")
        return IntentResult.none(f"Unknown capability: {result.intent}")

    missing = [
        f for f in capability.required_context
        if not snapshot.has_context(f, capability.reference_kind)
    ]
    if missing:
        detail = "; ".join(describe_context(f, capability.reference_kind) for f in missing)
        logger.warning(f"Precondition failed for '{capability.id}': {missing}")
        return IntentResult.none(f"Cannot run '{capability.id}': {detail}")

    absent = [p.name for p in capability.parameters if p.required and result.parameters.get(p.name) is None]
    if absent:
        logger.warning(f"Required arguments missing for '{capability.id}': {absent}")
        return IntentResult.none(f"Cannot run '{capability.id}': missing {', '.join(absent)}")

    return result
