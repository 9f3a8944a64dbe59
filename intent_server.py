"""
intent_server.py
============================================================
FastAPI 기반 Intent 라우팅 서버

이 서버는 다음과 같은 기능을 제공합니다:
1. /route: 자연어 메시지를 capability 하나로 분류 (검증된 인자 포함)
2. /capabilities: 지원하는 capability 목록 (UI 도움말용)

주요 특징:
- function calling 기반 분류 + malformed 응답 복구 휴리스틱
- 노트 기반 capability는 노트 참조(mention 또는 열려 있는 노트)가 없으면 실행하지 않음
- LLM 호출 전 토큰 예산 확인 (초과 시 429)
- 인증은 앞단에서 끝났다고 가정 (X-User-Id 헤더)
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, Header
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import AliasChoices, BaseModel, Field, field_validator

from commands.capabilities import build_default_registry
from schemas.context import UNRESOLVED_NAME, PageContext, Reference, ReferenceId, display_name_or_placeholder
from services.context_builder import build_context
from services.intent_classifier import BudgetExceededError, IntentClassifier
from services.selection_oracle import LangChainSelectionOracle, create_chat_model
from services.usage_meter import InMemoryUsageStore, UsageReporter

# ============================================================
# 레지스트리 / 사용량 저장소 (프로세스 시작 시 한 번)
# ============================================================
registry = build_default_registry()
usage_store = InMemoryUsageStore()
usage_reporter = UsageReporter(usage_store)


@lru_cache(maxsize=1)
def get_classifier() -> IntentClassifier:
    # LLM 클라이언트는 첫 요청 때 생성 (API 키 없이도 import 가능하도록)
    oracle = LangChainSelectionOracle(create_chat_model())
    return IntentClassifier(registry, oracle, usage_store, usage_reporter)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    # 남은 사용량 기록을 마저 처리하고 종료
    usage_reporter.shutdown(wait=True)


# ============================================================
# FastAPI 애플리케이션 초기화
# ============================================================
app = FastAPI(lifespan=lifespan)

# ============================================================
# 요청 스키마
# ============================================================
class MentionIn(BaseModel):
    id: ReferenceId = Field(..., validation_alias=AliasChoices("id", "noteId"))
    display_name: Optional[str] = Field(
        UNRESOLVED_NAME,
        validation_alias=AliasChoices("displayName", "noteName", "display_name"),
    )

    @field_validator("display_name")
    @classmethod
    def _none_name_is_unresolved(cls, value: Optional[str]) -> str:
        # displayName: null 은 이름을 모르는 것으로 취급
        return display_name_or_placeholder(value)


class PageContextIn(BaseModel):
    current_view: Optional[str] = Field(None, validation_alias=AliasChoices("currentView", "current_view"))
    selected_items: Dict[str, List[str]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("selectedItems", "selected_items"),
    )


class RouteRequest(BaseModel):
    message: str
    mentions: List[MentionIn] = Field(default_factory=list)
    page_context: Optional[PageContextIn] = Field(None, validation_alias=AliasChoices("pageContext", "page_context"))

# ============================================================
# /capabilities
# ============================================================
@app.get("/capabilities")
def capabilities():
    return {
        "success": True,
        "capabilities": [c.catalogue_entry() for c in registry.list_capabilities()],
    }

# ============================================================
# /route
# ============================================================
@app.post("/route")
def route(
    req: RouteRequest,
    x_user_id: Optional[str] = Header(None),
    classifier: IntentClassifier = Depends(get_classifier),
):
    if not x_user_id or not x_user_id.strip():
        return JSONResponse(status_code=401, content={"error": "User not authenticated"})

    page = None
    if req.page_context is not None:
        page = PageContext(
            current_view=req.page_context.current_view,
            selected_items=req.page_context.selected_items,
        )
    references = [Reference(id=m.id, display_name=m.display_name) for m in req.mentions]

    snapshot = build_context(x_user_id, page, references, profile_lookup=usage_store.profile)

    try:
        result = classifier.classify(req.message, snapshot)
    except BudgetExceededError as e:
        return JSONResponse(
            status_code=429,
            content={
                "error": "Monthly token limit exceeded",
                "limit": e.check.limit,
                "current": e.check.current,
                "remaining": e.check.remaining,
            },
        )

    logger.debug(f"Route response for user {x_user_id}: {result.intent}")
    return {"success": True, **result.to_response()}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
