"""
schemas/intent.py
============================================================
의도 분류 결과 스키마

분류 코어의 유일한 출력입니다. 요청마다 한 번 만들어지고,
precondition validator가 "none"으로 덮어쓸 수 있으며, 저장되지 않습니다.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

# 어떤 capability도 해당하지 않을 때의 sentinel
NONE_INTENT = "none"


class IntentResult(BaseModel):
    """
    의도 분류 결과

    Attributes:
        intent (str): 등록된 capability id 또는 "none"
        confidence (Optional[float]): 0~100, 참고용 (분기 조건으로 쓰지 않음)
        reasoning (Optional[str]): 감사/디버깅용 설명
        parameters (Dict[str, Any]): 추출된 인자 (값이 없으면 키 자체가 없음)
    """
    intent: str = NONE_INTENT
    confidence: Optional[float] = Field(default=None, ge=0, le=100)
    reasoning: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def none(cls, reasoning: str, confidence: float = 0) -> "IntentResult":
        return cls(intent=NONE_INTENT, confidence=confidence, reasoning=reasoning)

    @property
    def is_none(self) -> bool:
        return self.intent == NONE_INTENT

    def to_response(self) -> Dict[str, Any]:
        """파라미터를 최상위로 펼친 응답 dict (None 값은 제외)."""
        body: Dict[str, Any] = {"intent": self.intent}
        if self.confidence is not None:
            body["confidence"] = self.confidence
        if self.reasoning:
            body["reasoning"] = self.reasoning
        for key, value in self.parameters.items():
            if value is not None and key not in body:
                body[key] = value
        return body
