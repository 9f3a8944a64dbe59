"""
services/argument_normalizer.py
============================================================
선택된 capability의 인자 정규화/검증

oracle이 돌려준 raw 인자 dict를 capability의 파라미터 스키마에 맞춥니다:
1. 선언되지 않은 인자 제거
2. 타입 확인 (문자열은 trim, 빈 값/타입 불일치 값은 제거)
3. 참조가 필요한 capability는 스냅샷의 참조로 id/name을 채움
   (명시적 참조 > 현재 보고 있는 화면의 선택 항목)
4. fill_from_message 인자가 비어 있으면 원문 메시지로 채움
5. 필수 인자가 하나라도 없으면 실패
"""

from typing import Any, Dict, Optional, Tuple

from loguru import logger

from schemas.capability import Capability, ParameterSpec
from schemas.context import ContextSnapshot, Reference

NormalizeResult = Tuple[Optional[Dict[str, Any]], str]


def _coerce(spec: ParameterSpec, value: Any) -> Any:
    """스키마 타입에 맞으면 정리된 값을, 아니면 None을 반환합니다."""
    if value is None:
        return None
    if spec.type == "string":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            return None
        value = value.strip()
        return value or None
    if spec.type == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value
    if spec.type == "boolean":
        return value if isinstance(value, bool) else None
    return None


def _pick_reference(capability: Capability, args: Dict[str, Any], snapshot: ContextSnapshot) -> Optional[Reference]:
    kind = capability.reference_kind
    # 모델이 고른 id가 명시적 참조 중 하나와 일치하면 그것을 사용
    claimed = args.get(f"{kind}Id")
    if claimed:
        for ref in snapshot.references:
            if ref.kind == kind and ref.id == claimed:
                return ref
    return snapshot.reference_for(kind)


def _apply_reference(capability: Capability, args: Dict[str, Any], snapshot: ContextSnapshot) -> Optional[str]:
    kind = capability.reference_kind
    ref = _pick_reference(capability, args, snapshot)
    if ref is None:
        return f"'{capability.id}' needs a {kind} to work from, but none was referenced or open"

    id_key, name_key = f"{kind}Id", f"{kind}Name"
    if capability.parameter(id_key) is not None:
        if args.get(id_key) and args[id_key] != ref.id:
            logger.warning(f"Model chose {id_key}={args[id_key]!r} which is not in context; using {ref.id!r}")
        args[id_key] = ref.id

    if capability.parameter(name_key) is not None:
        # 이름을 모르면 추측하지 않고 비워 둠
        name = ref.resolved_name
        if name:
            args[name_key] = name
        else:
            args.pop(name_key, None)
    return None


def normalize_arguments(
    capability: Capability,
    raw_args: Dict[str, Any],
    snapshot: ContextSnapshot,
    raw_text: str,
) -> NormalizeResult:
    """
    raw 인자를 검증된 파라미터 dict로 변환합니다.

    Args:
        capability (Capability): 선택된 capability
        raw_args (Dict[str, Any]): oracle이 추출한 인자 (recovery에서는 빈 dict)
        snapshot (ContextSnapshot): 요청 컨텍스트
        raw_text (str): 사용자 원문 메시지

    Returns:
        NormalizeResult: (파라미터 dict, "ok") 또는 (None, 실패 사유)
    """
    args: Dict[str, Any] = {}
    for key, value in (raw_args or {}).items():
        spec = capability.parameter(key)
        if spec is None:
            logger.debug(f"Dropping undeclared argument '{key}' for '{capability.id}'")
            continue
        coerced = _coerce(spec, value)
        if coerced is None:
            if value not in (None, ""):
                logger.warning(f"Dropping '{key}' for '{capability.id}': expected {spec.type}, got {value!r}")
            continue
        args[key] = coerced

    if capability.reference_kind and "references" in capability.required_context:
        problem = _apply_reference(capability, args, snapshot)
        if problem:
            return None, problem

    for spec in capability.parameters:
        if spec.fill_from_message and spec.name not in args and raw_text.strip():
            args[spec.name] = raw_text.strip()

    missing = [p.name for p in capability.parameters if p.required and p.name not in args]
    if missing:
        return None, f"'{capability.id}' is missing required argument(s): {', '.join(missing)}"

    return args, "ok"
