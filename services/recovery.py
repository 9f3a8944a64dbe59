"""
services/recovery.py
============================================================
Malformed 응답 복구 휴리스틱

oracle이 함수 선택을 시도했지만 payload가 깨진 경우에만 호출됩니다.
네트워크 없이 결정적으로 동작합니다.

capability는 아래 세 조건을 모두 만족할 때만 복구됩니다:
(a) capability 키워드가 하나 이상 포함
(b) 행동 동사(make/create/turn/generate)가 하나 이상 포함
(c) capability의 required_context가 스냅샷에서 충족

여러 capability가 동시에 조건을 만족하면 레지스트리 등록 순서상
먼저 등록된 것을 선택합니다 (의도적인 단순화, confidence로 순위를 매기지 않음).
(a)(b)를 만족한 capability의 컨텍스트가 없으면 다음 후보로 넘어가지 않고
"none"으로 끝냅니다.
"""

import re
from typing import Iterable, List

from loguru import logger

from schemas.capability import Capability
from schemas.context import ContextSnapshot
from schemas.intent import IntentResult
from services.argument_normalizer import normalize_arguments
from services.precondition_validator import describe_context

ACTION_VERBS = ("make", "create", "turn", "generate")

RECOVERY_CONFIDENCE = 60


def _keyword_pattern(keyword: str) -> re.Pattern:
    # 복수형(s/es/zes)과 단어 사이 공백 차이는 허용
    body = r"\s+".join(re.escape(part) for part in keyword.lower().split())
    return re.compile(rf"\b{body}(?:s|es|zes)?\b")


def _verb_pattern(verb: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(verb)}s?\b")


def matched_keywords(text: str, capability: Capability) -> List[str]:
    lowered = text.lower()
    return [kw for kw in capability.keywords if _keyword_pattern(kw).search(lowered)]


def matched_verbs(text: str) -> List[str]:
    lowered = text.lower()
    return [v for v in ACTION_VERBS if _verb_pattern(v).search(lowered)]


def recover(raw_text: str, snapshot: ContextSnapshot, capabilities: Iterable[Capability]) -> IntentResult:
    """
    키워드 + 컨텍스트 패턴 매칭으로 의도를 복구합니다.

    Args:
        raw_text (str): 사용자 원문 메시지
        snapshot (ContextSnapshot): 요청 컨텍스트
        capabilities (Iterable[Capability]): 등록 순서대로의 capability 목록

    Returns:
        IntentResult: 복구된 의도, 또는 "none"
    """
    verbs = matched_verbs(raw_text)
    if not verbs:
        return IntentResult.none("Model response was malformed and recovery found no action verb")

    for capability in capabilities:
        keywords = matched_keywords(raw_text, capability)
        if not keywords:
            continue

        missing = [
            f for f in capability.required_context
            if not snapshot.has_context(f, capability.reference_kind)
        ]
        if missing:
            # 다른 capability로 넘어가 추측하지 않음
            detail = "; ".join(describe_context(f, capability.reference_kind) for f in missing)
            logger.info(f"Recovery matched '{capability.id}' but context is missing: {missing}")
            return IntentResult.none(
                f"Recovered '{capability.id}' from a malformed model response, but {detail}"
            )

        parameters, reason = normalize_arguments(capability, {}, snapshot, raw_text)
        if parameters is None:
            return IntentResult.none(f"Recovered '{capability.id}' from a malformed model response, but {reason}")

        logger.info(f"Recovered intent '{capability.id}' (keywords={keywords}, verbs={verbs})")
        return IntentResult(
            intent=capability.id,
            confidence=RECOVERY_CONFIDENCE,
            reasoning=(
                f"Recovered '{capability.id}' from a malformed model response "
                f"(keywords: {', '.join(keywords)}; verb: {verbs[0]})"
            ),
            parameters=parameters,
        )

    return IntentResult.none("Model response was malformed and no capability could be recovered")
