"""
services/selection_oracle.py
============================================================
Structured-selection oracle

외부 LLM을 function calling 모드로 한 번 호출하는 유일한 지점입니다.
- 재시도 없음 (max_retries=0): 같은 입력으로 다시 분류해도 결과가 바뀔 가능성이 낮음
- timeout / 네트워크 오류는 "no_selection"으로 변환 (예외를 밖으로 던지지 않음)
"""

from typing import Any, Dict, List

from langchain_openai import ChatOpenAI
from loguru import logger

from chains.selection_chain import build_selection_chain
from config import (
    CHAT_MODEL,
    INTENT_MAX_OUTPUT_TOKENS,
    INTENT_TEMPERATURE,
    INTENT_TIMEOUT_SECONDS,
    OPENAI_API_KEY,
)
from schemas.selection import SelectionOutcome
from services.selection_parser import parse_selection


def create_chat_model() -> ChatOpenAI:
    """intent 라우팅 전용 LLM 설정."""
    return ChatOpenAI(
        model=CHAT_MODEL,
        api_key=OPENAI_API_KEY or None,
        temperature=INTENT_TEMPERATURE,
        max_tokens=INTENT_MAX_OUTPUT_TOKENS,
        timeout=INTENT_TIMEOUT_SECONDS,
        max_retries=0,
    )


class SelectionOracle:
    """oracle 인터페이스: 프롬프트 + 함수 매니페스트 -> SelectionOutcome"""

    def select(self, prompt: str, tools: List[Dict[str, Any]]) -> SelectionOutcome:
        raise NotImplementedError


class LangChainSelectionOracle(SelectionOracle):
    def __init__(self, llm) -> None:
        self.llm = llm

    def select(self, prompt: str, tools: List[Dict[str, Any]]) -> SelectionOutcome:
        known = [t["function"]["name"] for t in tools]
        chain = build_selection_chain(self.llm, tools)

        try:
            message = chain.invoke({"prompt": prompt})
        except Exception as e:
            # timeout 포함: 호출자에게는 "선택 없음"으로 보임
            logger.error(f"Selection oracle call failed: {type(e).__name__}: {e}")
            return SelectionOutcome.no_selection(detail=f"{type(e).__name__}: {e}")

        outcome = parse_selection(message, known)
        logger.debug(f"Selection oracle outcome: {outcome.kind} ({outcome.function_name})")
        return outcome
