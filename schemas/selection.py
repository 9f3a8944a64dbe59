"""
schemas/selection.py
============================================================
Structured-selection oracle 응답 스키마

oracle의 wire format(function calling 응답)을 코어에 직접 노출하지 않고,
세 가지 결과 중 하나로만 전달합니다:
- "selection": 함수 하나를 선택하고 인자를 채움
- "malformed": 선택을 시도했지만 payload가 구조 검증에 실패
- "no_selection": 아무 것도 선택하지 않음 (timeout/네트워크 오류 포함)
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

OutcomeKind = Literal["selection", "malformed", "no_selection"]


class SelectionOutcome(BaseModel):
    kind: OutcomeKind
    function_name: Optional[str] = None
    arguments: Dict[str, Any] = Field(default_factory=dict)
    # malformed payload 원문이나 오류 메시지 (로그용)
    detail: Optional[str] = None
    total_tokens: int = 0

    @classmethod
    def selection(cls, function_name: str, arguments: Dict[str, Any], total_tokens: int = 0) -> "SelectionOutcome":
        return cls(kind="selection", function_name=function_name, arguments=arguments, total_tokens=total_tokens)

    @classmethod
    def malformed(cls, detail: str, function_name: Optional[str] = None, total_tokens: int = 0) -> "SelectionOutcome":
        return cls(kind="malformed", function_name=function_name, detail=detail, total_tokens=total_tokens)

    @classmethod
    def no_selection(cls, detail: Optional[str] = None, total_tokens: int = 0) -> "SelectionOutcome":
        return cls(kind="no_selection", detail=detail, total_tokens=total_tokens)
