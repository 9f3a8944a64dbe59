"""
schemas/capability.py
============================================================
Capability 스키마 정의

Capability는 실행 가능한 사용자 액션 하나를 나타냅니다.
- 모델에게: 설명, 예시, 함수 선언 (function calling)
- 런타임에게: 인자 스키마, 필요한 컨텍스트, recovery용 키워드 집합
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ParameterType = Literal["string", "number", "boolean"]


class ParameterSpec(BaseModel):
    """
    Capability 인자 하나의 선언

    Attributes:
        name (str): 인자 이름 (예: "noteId")
        type (ParameterType): JSON 타입
        required (bool): 누락 시 선택 전체가 "none"으로 강등됨
        description (str): 모델에게 주는 추출 힌트
        fill_from_message (bool): 모델이 생략하면 원문 메시지로 채움
    """
    model_config = ConfigDict(frozen=True)

    name: str
    type: ParameterType = "string"
    required: bool = False
    description: str = ""
    fill_from_message: bool = False


class Capability(BaseModel):
    """
    지원하는 액션 하나

    Attributes:
        id (str): 레지스트리 전체에서 유일한 태그 (예: "flashcard")
        function_name (str): 모델에게 노출되는 함수 이름 (예: "generate_flashcard")
        description (str): 모델/사용자용 설명
        keywords (List[str]): recovery 휴리스틱이 사용하는 닫힌 키워드 집합
        examples (List[str]): 예시 사용자 입력
        parameters (List[ParameterSpec]): 인자 스키마
        required_context (List[str]): ContextSnapshot 필드 이름 목록
        reference_kind (Optional[str]): "references"가 필요할 때 어떤 종류의 콘텐츠인지
    """
    model_config = ConfigDict(frozen=True)

    id: str
    function_name: str
    description: str
    keywords: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)
    parameters: List[ParameterSpec] = Field(default_factory=list)
    required_context: List[str] = Field(default_factory=list)
    reference_kind: Optional[str] = None

    def parameter(self, name: str) -> Optional[ParameterSpec]:
        for spec in self.parameters:
            if spec.name == name:
                return spec
        return None

    def json_schema(self) -> Dict[str, Any]:
        """Render the parameter list as a JSON schema object."""
        return {
            "type": "object",
            "properties": {
                p.name: {"type": p.type, "description": p.description}
                for p in self.parameters
            },
            "required": [p.name for p in self.parameters if p.required],
        }

    def function_declaration(self) -> Dict[str, Any]:
        """OpenAI-style function tool, as accepted by `bind_tools`."""
        return {
            "type": "function",
            "function": {
                "name": self.function_name,
                "description": self.description,
                "parameters": self.json_schema(),
            },
        }

    def catalogue_entry(self) -> Dict[str, Any]:
        # /capabilities 응답용
        return {
            "id": self.id,
            "description": self.description,
            "keywords": list(self.keywords),
            "requiredContext": list(self.required_context),
            "examples": list(self.examples),
        }
