"""
schemas/context.py
============================================================
요청 단위 컨텍스트 스냅샷

분류 한 번에 필요한 상황 정보를 읽기 전용 묶음으로 표현합니다:
- user: 요금제, 남은 예산 (참고용 정보일 뿐, 권한은 usage meter에 있음)
- page: 사용자가 보고 있는 화면
- references: 사용자가 명시적으로 언급한 콘텐츠 (@mention)

스냅샷은 생성 후 변경되지 않으며, 스스로 DB 조회를 하지 않습니다.
"""

from typing import Annotated, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

# 표시 이름을 알 수 없을 때 쓰는 placeholder (파라미터로는 절대 내보내지 않음)
UNRESOLVED_NAME = "Untitled"

# 콘텐츠 종류 -> 해당 콘텐츠를 보여주는 화면 이름 (selectedItems 키와 동일)
VIEW_FOR_KIND = {
    "note": "notes",
    "test": "tests",
    "flashcard": "flashcards",
}

# 앞뒤 공백을 제거한 뒤에도 비어 있으면 안 되는 식별자
ReferenceId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def display_name_or_placeholder(value: Optional[str]) -> str:
    return UNRESOLVED_NAME if value is None else value


class Reference(BaseModel):
    """
    명시적으로 참조된 콘텐츠 하나

    Attributes:
        id (str): 불투명 식별자 (비어 있으면 안 됨)
        display_name (str): 표시 이름 (모르면 UNRESOLVED_NAME)
        kind (str): 콘텐츠 종류 (현재는 mention = note)
    """
    model_config = ConfigDict(frozen=True)

    id: ReferenceId
    display_name: str = UNRESOLVED_NAME
    kind: str = "note"

    @field_validator("display_name", mode="before")
    @classmethod
    def _none_name_is_unresolved(cls, value):
        return display_name_or_placeholder(value)

    @property
    def resolved_name(self) -> Optional[str]:
        name = (self.display_name or "").strip()
        if not name or name == UNRESOLVED_NAME:
            return None
        return name


class PageContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_view: Optional[str] = None
    selected_items: Dict[str, List[str]] = Field(default_factory=dict)


class UserProfile(BaseModel):
    """
    사용자 요금제/사용량 정보

    degraded=True 이면 프로필 조회에 실패해서 기본값으로 채워진 상태입니다.
    분류 자체는 계속 가능해야 하므로 예외 대신 이 플래그를 씁니다.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    plan_name: str = "unknown"
    tokens_used: int = 0
    monthly_limit: int = 0
    remaining: int = 0
    degraded: bool = False


class ContextSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserProfile
    page: Optional[PageContext] = None
    references: Tuple[Reference, ...] = ()

    def explicit_reference(self, kind: Optional[str] = None) -> Optional[Reference]:
        for ref in self.references:
            if kind is None or ref.kind == kind:
                return ref
        return None

    def page_reference(self, kind: Optional[str] = None) -> Optional[Reference]:
        """
        현재 화면에서 유추되는 참조를 반환합니다.

        사용자가 해당 종류의 화면(예: "notes")에 있고 선택된 항목이 있으면
        첫 번째 선택 항목을 참조로 간주합니다. 이름은 알 수 없으므로 placeholder.
        """
        if self.page is None or not self.page.current_view:
            return None

        kinds = [kind] if kind else list(VIEW_FOR_KIND)
        for k in kinds:
            view = VIEW_FOR_KIND.get(k)
            if view is None or self.page.current_view != view:
                continue
            selected = [i for i in self.page.selected_items.get(view, []) if i]
            if selected:
                return Reference(id=selected[0], kind=k)
        return None

    def reference_for(self, kind: Optional[str] = None) -> Optional[Reference]:
        """명시적 참조가 우선, 없으면 화면에서 유추한 참조."""
        return self.explicit_reference(kind) or self.page_reference(kind)

    def has_context(self, field: str, kind: Optional[str] = None) -> bool:
        """
        capability의 required_context 항목 하나가 충족되는지 확인합니다.

        Args:
            field (str): ContextSnapshot 필드 이름 ("user" | "page" | "references")
            kind (Optional[str]): "references"일 때 필요한 콘텐츠 종류

        Returns:
            bool: 충족 여부 (알 수 없는 필드는 항상 False)
        """
        if field == "references":
            return self.reference_for(kind) is not None
        if field == "page":
            return self.page is not None and bool(self.page.current_view)
        if field == "user":
            return not self.user.degraded
        return False
