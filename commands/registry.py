"""
commands/registry.py
============================================================
Capability 레지스트리

서버가 "실행 가능하다고 인정하는" 액션 목록입니다.
- 프로세스 시작 시 한 번 채우고 seal() 이후에는 읽기 전용
- 등록 순서가 곧 recovery 휴리스틱의 tie-break 순서
"""

from typing import Any, Dict, Iterator, List, Optional

from loguru import logger

from schemas.capability import Capability, ParameterSpec
from schemas.context import ContextSnapshot

# required_context에 쓸 수 있는 이름 = ContextSnapshot의 실제 필드
CONTEXT_FIELDS = frozenset(ContextSnapshot.model_fields)


class CapabilityDefinitionError(ValueError):
    """capability 정의가 잘못된 경우 (설정 오류)"""


class DuplicateCapabilityError(CapabilityDefinitionError):
    pass


class CapabilityRegistry:
    def __init__(self) -> None:
        self._capabilities: Dict[str, Capability] = {}
        self._by_function: Dict[str, Capability] = {}
        self._sealed = False

    def register(self, capability: Capability) -> Capability:
        """
        capability를 등록합니다.

        Raises:
            DuplicateCapabilityError: id 또는 function_name이 이미 등록된 경우
            CapabilityDefinitionError: seal 이후 등록, 알 수 없는 context 필드,
                                       중복된 인자 이름 등
        """
        if self._sealed:
            raise CapabilityDefinitionError(
                f"Registry is sealed; cannot register '{capability.id}'"
            )
        if capability.id in self._capabilities:
            raise DuplicateCapabilityError(f"Capability '{capability.id}' is already registered")
        if capability.function_name in self._by_function:
            raise DuplicateCapabilityError(
                f"Function '{capability.function_name}' is already declared by "
                f"'{self._by_function[capability.function_name].id}'"
            )

        unknown = [f for f in capability.required_context if f not in CONTEXT_FIELDS]
        if unknown:
            raise CapabilityDefinitionError(
                f"Capability '{capability.id}' requires unknown context fields: {unknown}"
            )

        names = [p.name for p in capability.parameters]
        if len(names) != len(set(names)):
            raise CapabilityDefinitionError(f"Capability '{capability.id}' declares duplicate parameters")

        self._capabilities[capability.id] = capability
        self._by_function[capability.function_name] = capability
        logger.debug(f"Registered capability: {capability.id} ({capability.function_name})")
        return capability

    def seal(self) -> "CapabilityRegistry":
        # 요청 처리 시작 전에 호출
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def list_capabilities(self) -> List[Capability]:
        """등록 순서대로 전체 capability 목록."""
        return list(self._capabilities.values())

    def get(self, capability_id: str) -> Optional[Capability]:
        return self._capabilities.get(capability_id)

    def get_by_function_name(self, function_name: str) -> Optional[Capability]:
        return self._by_function.get(function_name)

    def get_schema(self, capability_id: str) -> List[ParameterSpec]:
        capability = self._capabilities.get(capability_id)
        if capability is None:
            raise KeyError(capability_id)
        return list(capability.parameters)

    def tool_manifest(self) -> List[Dict[str, Any]]:
        """oracle에 넘길 함수 선언 목록 (OpenAI tool 포맷)."""
        return [c.function_declaration() for c in self._capabilities.values()]

    def __contains__(self, capability_id: object) -> bool:
        return capability_id in self._capabilities

    def __iter__(self) -> Iterator[Capability]:
        return iter(self.list_capabilities())

    def __len__(self) -> int:
        return len(self._capabilities)
