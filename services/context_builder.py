"""
services/context_builder.py
============================================================
요청 컨텍스트 스냅샷 생성

사용자 프로필(요금제/사용량), 현재 화면, 명시적 참조(@mention)를
하나의 읽기 전용 스냅샷으로 묶습니다. 결정 로직은 없습니다.

프로필 조회에 실패해도 요청 전체를 실패시키지 않고,
degraded 프로필로 스냅샷을 만들어 분류가 계속 가능하게 합니다.
"""

from typing import Any, Callable, Iterable, Mapping, Optional, Union

from loguru import logger

from schemas.context import ContextSnapshot, PageContext, Reference, UserProfile
from schemas.usage import UsageSnapshot

ProfileLookup = Callable[[str], UsageSnapshot]
ReferenceInput = Union[Reference, Mapping[str, Any]]


def _fetch_user_profile(user_id: str, profile_lookup: Optional[ProfileLookup]) -> UserProfile:
    if profile_lookup is None:
        return UserProfile(user_id=user_id, degraded=True)

    try:
        usage = profile_lookup(user_id)
    except Exception as e:
        logger.warning(f"Could not resolve profile for user {user_id}, using degraded context: {e}")
        return UserProfile(user_id=user_id, degraded=True)

    return UserProfile(
        user_id=user_id,
        plan_name=usage.plan_name,
        tokens_used=usage.tokens_used,
        monthly_limit=usage.monthly_limit,
        remaining=usage.remaining,
    )


def _to_reference(item: ReferenceInput) -> Reference:
    if isinstance(item, Reference):
        return item
    return Reference.model_validate(dict(item))


def build_context(
    user_id: str,
    page_context: Optional[PageContext] = None,
    references: Optional[Iterable[ReferenceInput]] = None,
    profile_lookup: Optional[ProfileLookup] = None,
) -> ContextSnapshot:
    """
    요청 하나에 대한 컨텍스트 스냅샷을 만듭니다.

    Args:
        user_id (str): 인증된 사용자 id (비어 있으면 안 됨)
        page_context (Optional[PageContext]): 현재 화면 정보
        references (Optional[Iterable]): 명시적 참조 목록 (순서 유지, 각 항목은 id 필수)
        profile_lookup (Optional[ProfileLookup]): user_id -> UsageSnapshot

    Returns:
        ContextSnapshot: 추가 조회 없이 해석 가능한 스냅샷

    Raises:
        ValueError: user_id가 비어 있거나 참조에 id가 없는 경우
    """
    if not user_id or not user_id.strip():
        raise ValueError("user_id is required to build a context snapshot")

    refs = tuple(_to_reference(r) for r in (references or []))
    user = _fetch_user_profile(user_id, profile_lookup)

    return ContextSnapshot(user=user, page=page_context, references=refs)
