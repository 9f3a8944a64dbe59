"""
services/selection_parser.py
============================================================
Function calling 응답 파서

LLM이 돌려준 AIMessage를 SelectionOutcome 세 가지 중 하나로 변환합니다.
LLM이 잘못된 형식의 함수 호출을 만들 수 있으므로 방어 코드가 필요합니다.
"""

from typing import Iterable

from loguru import logger

from schemas.selection import SelectionOutcome

# Gemini 계열이 함수 호출 JSON 생성에 실패했을 때 쓰는 finish reason
MALFORMED_FINISH_REASONS = frozenset({"MALFORMED_FUNCTION_CALL"})


def _total_tokens(message) -> int:
    usage = getattr(message, "usage_metadata", None) or {}
    try:
        return int(usage.get("total_tokens") or 0)
    except (TypeError, ValueError):
        return 0


def parse_selection(message, known_functions: Iterable[str]) -> SelectionOutcome:
    """
    AIMessage를 SelectionOutcome으로 변환합니다.

    판정 순서:
    1. invalid_tool_calls가 있거나 finish reason이 malformed -> "malformed"
    2. tool_calls가 없음 -> "no_selection"
    3. 알 수 없는 함수 이름, 또는 args가 dict가 아님 -> "malformed"
    4. 그 외 -> "selection" (여러 개면 첫 번째만 사용)

    Args:
        message: LangChain AIMessage (tool_calls / invalid_tool_calls 포함)
        known_functions (Iterable[str]): 매니페스트에 넘긴 함수 이름들

    Returns:
        SelectionOutcome: 정규화된 oracle 결과
    """
    known = set(known_functions)
    tokens = _total_tokens(message)

    invalid = getattr(message, "invalid_tool_calls", None) or []
    if invalid:
        bad = invalid[0]
        detail = bad.get("error") or f"unparseable arguments: {bad.get('args')!r}"
        return SelectionOutcome.malformed(detail=detail, function_name=bad.get("name"), total_tokens=tokens)

    finish_reason = (getattr(message, "response_metadata", None) or {}).get("finish_reason")
    if finish_reason in MALFORMED_FINISH_REASONS:
        return SelectionOutcome.malformed(detail=f"finish_reason={finish_reason}", total_tokens=tokens)

    calls = getattr(message, "tool_calls", None) or []
    if not calls:
        return SelectionOutcome.no_selection(total_tokens=tokens)

    if len(calls) > 1:
        logger.warning(f"Model returned {len(calls)} function calls; using the first one")

    call = calls[0]
    name = call.get("name")
    if name not in known:
        return SelectionOutcome.malformed(detail=f"unknown function: {name!r}", function_name=name, total_tokens=tokens)

    args = call.get("args")
    if not isinstance(args, dict):
        return SelectionOutcome.malformed(
            detail=f"arguments are not an object: {args!r}", function_name=name, total_tokens=tokens
        )

    return SelectionOutcome.selection(function_name=name, arguments=args, total_tokens=tokens)
