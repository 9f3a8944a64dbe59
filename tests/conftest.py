"""
tests/conftest.py
============================================================
공용 fixture: 가짜 oracle, 가짜 예산 oracle, 즉시 실행 executor
"""

from concurrent.futures import Executor, Future

import pytest

from commands.capabilities import build_default_registry
from schemas.context import ContextSnapshot, PageContext, Reference, UserProfile
from schemas.selection import SelectionOutcome
from schemas.usage import BudgetCheck, UsageSnapshot
from services.selection_oracle import SelectionOracle
from services.usage_meter import BudgetOracle


class FakeOracle(SelectionOracle):
    """미리 정해 둔 결과를 돌려주고 호출을 기록한다."""

    def __init__(self, outcome: SelectionOutcome = None):
        self.outcome = outcome or SelectionOutcome.no_selection()
        self.calls = []

    def select(self, prompt, tools):
        self.calls.append({"prompt": prompt, "tools": tools})
        return self.outcome


class FakeBudget(BudgetOracle):
    def __init__(self, allowed=True, limit=1000, current=0, fail_record=False, fail_check=False):
        self.allowed = allowed
        self.limit = limit
        self.current = current
        self.fail_record = fail_record
        self.fail_check = fail_check
        self.checks = []
        self.recorded = []

    def check_budget(self, user_id, estimated_tokens):
        self.checks.append((user_id, estimated_tokens))
        if self.fail_check:
            raise ConnectionError("usage database unavailable")
        return BudgetCheck(
            allowed=self.allowed,
            remaining=max(0, self.limit - self.current - estimated_tokens),
            limit=self.limit,
            current=self.current,
        )

    def record_cost(self, user_id, tokens):
        if self.fail_record:
            raise RuntimeError("Failed to record token usage")
        self.recorded.append((user_id, tokens))

    def profile(self, user_id):
        return UsageSnapshot(plan_name="free", tokens_used=self.current, monthly_limit=self.limit,
                             remaining=self.limit - self.current)


class ImmediateExecutor(Executor):
    """submit 즉시 현재 스레드에서 실행 (테스트 결정성용)"""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def fake_oracle():
    return FakeOracle


@pytest.fixture
def fake_budget():
    return FakeBudget


@pytest.fixture
def immediate_executor():
    return ImmediateExecutor()


@pytest.fixture
def make_snapshot():
    def _make(references=(), current_view=None, selected_items=None, plan="free", degraded=False):
        page = None
        if current_view is not None or selected_items:
            page = PageContext(current_view=current_view, selected_items=selected_items or {})
        return ContextSnapshot(
            user=UserProfile(user_id="user-1", plan_name=plan, degraded=degraded),
            page=page,
            references=tuple(Reference(**r) if isinstance(r, dict) else r for r in references),
        )
    return _make
