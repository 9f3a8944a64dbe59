# schemas/usage.py
from pydantic import BaseModel


class BudgetCheck(BaseModel):
    """
    예산 확인 결과

    allowed=False 이면 oracle 호출 전에 요청을 거절해야 합니다.
    """
    allowed: bool
    remaining: int
    limit: int
    current: int = 0


class UsageSnapshot(BaseModel):
    plan_name: str
    tokens_used: int
    monthly_limit: int
    remaining: int
