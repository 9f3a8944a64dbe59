"""
services/intent_classifier.py
============================================================
사용자 의도 분류기 (capability dispatch)

자유 형식의 사용자 메시지를 등록된 capability 중 정확히 하나
(또는 "none")로 매핑하고, 검증된 인자를 함께 돌려줍니다.

처리 순서:
1. 빈 메시지 -> 즉시 "none" (예산 확인/LLM 호출 없음)
2. 예산 확인 -> 부족하면 BudgetExceededError (LLM 호출 전)
3. 프롬프트 구성 (메시지 + 컨텍스트 + capability별 결정 규칙)
4. oracle에 function calling 한 번 (유일한 외부 대기 지점)
5. 응답 형태별 분기
   - selection: 인자 정규화/검증
   - malformed: 키워드 기반 recovery
   - no_selection: "none"
6. precondition validator로 최종 확인
7. 사용량 기록 (fire-and-forget)

confidence는 참고용이며 어떤 분기에서도 게이트로 쓰지 않습니다.
"""

from typing import List, Optional

from loguru import logger

from commands.registry import CapabilityRegistry
from config import INTENT_ESTIMATED_TOKENS
from prompts.intent_prompt import (
    INTENT_PROMPT_TEMPLATE,
    NO_CONTEXT_RULE_TEMPLATE,
    REFERENCE_RULE_TEMPLATE,
)
from schemas.capability import Capability
from schemas.context import ContextSnapshot
from schemas.intent import IntentResult
from schemas.selection import SelectionOutcome
from schemas.usage import BudgetCheck
from services.argument_normalizer import normalize_arguments
from services.precondition_validator import validate_preconditions
from services.recovery import recover
from services.selection_oracle import SelectionOracle
from services.usage_meter import BudgetOracle, UsageReporter

SELECTED_CONFIDENCE = 90
NO_SELECTION_CONFIDENCE = 50


class BudgetExceededError(Exception):
    """예산 초과: 분류 결과가 아니라 호출자가 별도로 처리해야 하는 신호"""

    def __init__(self, check: BudgetCheck) -> None:
        super().__init__(
            f"Monthly token limit exceeded (limit={check.limit}, current={check.current})"
        )
        self.check = check


# ============================================================
# 프롬프트 구성
# ============================================================
def render_capabilities(capabilities: List[Capability]) -> str:
    lines = []
    for i, c in enumerate(capabilities, start=1):
        examples = "; ".join(f'"{e}"' for e in c.examples[:3])
        lines.append(f"{i}. {c.function_name} ({c.id}) - {c.description}")
        if examples:
            lines.append(f"   examples: {examples}")
    return "\n".join(lines)


def render_context(snapshot: ContextSnapshot) -> str:
    """LLM에게 보여줄 최소한의 컨텍스트 요약."""
    lines = [f"Plan: {snapshot.user.plan_name}"]

    view = snapshot.page.current_view if snapshot.page else None
    lines.append(f"Current view: {view or 'unknown'}")

    if snapshot.references:
        lines.append("Referenced items:")
        for ref in snapshot.references:
            lines.append(f"- {ref.kind} id={ref.id} name={ref.resolved_name or '(unknown)'}")
    else:
        lines.append("Referenced items: none")

    implied = snapshot.page_reference()
    if implied is not None:
        lines.append(f"Open {implied.kind}: id={implied.id}")

    return "\n".join(lines)


def render_rules(capabilities: List[Capability]) -> str:
    rules = []
    for c in capabilities:
        if c.reference_kind and "references" in c.required_context:
            rules.append(REFERENCE_RULE_TEMPLATE.format(
                capability=c.id, kind=c.reference_kind, function=c.function_name,
            ))
        else:
            rules.append(NO_CONTEXT_RULE_TEMPLATE.format(function=c.function_name, description=c.description))
    return "\n".join(rules)


def build_prompt(raw_text: str, snapshot: ContextSnapshot, capabilities: List[Capability]) -> str:
    return INTENT_PROMPT_TEMPLATE.format(
        capabilities=render_capabilities(capabilities),
        context=render_context(snapshot),
        rules=render_rules(capabilities),
        message=raw_text.strip(),
    )


# ============================================================
# 분류기
# ============================================================
class IntentClassifier:
    def __init__(
        self,
        registry: CapabilityRegistry,
        oracle: SelectionOracle,
        budget: BudgetOracle,
        reporter: Optional[UsageReporter] = None,
        estimated_tokens: int = INTENT_ESTIMATED_TOKENS,
    ) -> None:
        self.registry = registry
        self.oracle = oracle
        self.budget = budget
        self.reporter = reporter
        self.estimated_tokens = estimated_tokens

    def classify(
        self,
        raw_text: str,
        snapshot: ContextSnapshot,
        capabilities: Optional[List[Capability]] = None,
    ) -> IntentResult:
        """
        사용자 메시지를 IntentResult로 분류합니다.

        Args:
            raw_text (str): 사용자 원문 메시지
            snapshot (ContextSnapshot): 요청 컨텍스트
            capabilities (Optional[List[Capability]]): 후보 목록 (기본: 레지스트리 전체)

        Returns:
            IntentResult: 항상 well-formed 결과

        Raises:
            BudgetExceededError: 예산 초과 (oracle 호출 전)
        """
        if not raw_text or not raw_text.strip():
            return IntentResult.none("Message is empty", confidence=0)

        capabilities = capabilities if capabilities is not None else self.registry.list_capabilities()
        user_id = snapshot.user.user_id

        try:
            check = self.budget.check_budget(user_id, self.estimated_tokens)
        except Exception as e:
            # 예산을 확인할 수 없으면 과금 없이 거절
            logger.error(f"Budget check failed for user {user_id}: {e}")
            return IntentResult.none("Usage budget could not be verified", confidence=0)

        if not check.allowed:
            logger.warning(f"Token budget exhausted for user {user_id} (limit={check.limit}, current={check.current})")
            raise BudgetExceededError(check)

        prompt = build_prompt(raw_text, snapshot, capabilities)
        tools = [c.function_declaration() for c in capabilities]
        outcome = self.oracle.select(prompt, tools)

        result = self._interpret(outcome, raw_text, snapshot, capabilities)
        result = validate_preconditions(result, snapshot, self.registry)

        logger.info(f"Intent routed: user={user_id} intent={result.intent} via={outcome.kind}")
        self._report_usage(user_id, outcome.total_tokens)
        return result

    def _interpret(
        self,
        outcome: SelectionOutcome,
        raw_text: str,
        snapshot: ContextSnapshot,
        capabilities: List[Capability],
    ) -> IntentResult:
        if outcome.kind == "malformed":
            logger.warning(f"Malformed selection from model ({outcome.detail}); running recovery")
            return recover(raw_text, snapshot, capabilities)

        if outcome.kind == "no_selection":
            if outcome.detail:
                logger.warning(f"No selection from model: {outcome.detail}")
            return IntentResult.none("No capability matched the message", confidence=NO_SELECTION_CONFIDENCE)

        capability = next((c for c in capabilities if c.function_name == outcome.function_name), None)
        if capability is None:
            # parser가 걸러야 하지만, 후보 목록 밖의 함수는 malformed와 동일하게 처리
            logger.warning(f"Model selected undeclared function {outcome.function_name!r}; running recovery")
            return recover(raw_text, snapshot, capabilities)

        parameters, reason = normalize_arguments(capability, outcome.arguments, snapshot, raw_text)
        if parameters is None:
            logger.warning(f"Rejected selection of '{capability.id}': {reason}")
            return IntentResult.none(reason, confidence=0)

        return IntentResult(
            intent=capability.id,
            confidence=SELECTED_CONFIDENCE,
            reasoning=f"Model selected {capability.function_name}",
            parameters=parameters,
        )

    def _report_usage(self, user_id: str, tokens: int) -> None:
        if self.reporter is None or tokens <= 0:
            return
        try:
            self.reporter.report(user_id, tokens)
        except Exception as e:
            logger.warning(f"Usage reporting failed for user {user_id}: {e}")
