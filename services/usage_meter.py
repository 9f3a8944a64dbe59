"""
services/usage_meter.py
============================================================
토큰 사용량 계측

두 가지 역할:
1. 예산 확인 (check_budget): LLM 호출 전의 하드 게이트
2. 사용량 기록 (record_cost): 호출 후 best-effort 기록

기록은 UsageReporter가 스레드 풀에 넘기고 기다리지 않습니다.
기록 실패는 로그만 남기고 분류 결과에 영향을 주지 않습니다.

사용자별 카운터 갱신은 해당 user_id의 lock 안에서만 일어납니다.
같은 사용자의 동시 요청은 check와 record 사이에서 경쟁할 수 있으며,
약간의 과다/과소 집계는 허용합니다 (분류 결정의 정확성과는 무관).
"""

import threading
import weakref
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, Optional

from loguru import logger

from config import (
    DEFAULT_PLAN,
    FREE_PLAN_MONTHLY_TOKENS,
    PRO_PLAN_MONTHLY_TOKENS,
    USAGE_REPORTER_WORKERS,
)
from schemas.usage import BudgetCheck, UsageSnapshot

DEFAULT_PLAN_LIMITS = {
    "free": FREE_PLAN_MONTHLY_TOKENS,
    "pro": PRO_PLAN_MONTHLY_TOKENS,
}


class UnknownPlanError(KeyError):
    pass


class BudgetOracle:
    """예산 oracle 인터페이스"""

    def check_budget(self, user_id: str, estimated_tokens: int) -> BudgetCheck:
        raise NotImplementedError

    def record_cost(self, user_id: str, tokens: int) -> None:
        raise NotImplementedError

    def profile(self, user_id: str) -> UsageSnapshot:
        raise NotImplementedError


def _month_start(today: date) -> date:
    return today.replace(day=1)


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass
class _UsageRecord:
    plan: str
    tokens_used: int
    last_reset: date


class InMemoryUsageStore(BudgetOracle):
    """
    프로세스 메모리 기반 사용량 저장소

    - 처음 보는 사용자는 기본 요금제(free)로 생성
    - 달이 바뀌면 카운터를 0으로 리셋 (UTC 기준 매월 1일)
    """

    def __init__(
        self,
        plan_limits: Optional[Dict[str, int]] = None,
        default_plan: str = DEFAULT_PLAN,
        clock: Callable[[], date] = _utc_today,
    ) -> None:
        self.plan_limits = dict(plan_limits or DEFAULT_PLAN_LIMITS)
        if default_plan not in self.plan_limits:
            raise UnknownPlanError(default_plan)
        self.default_plan = default_plan
        self._clock = clock
        self._records: Dict[str, _UsageRecord] = {}
        # 사용 중인 lock만 유지 (잡고 있는 호출이 없으면 자동으로 사라짐)
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    def _record_for(self, user_id: str) -> _UsageRecord:
        # 호출자가 user lock을 잡고 있어야 함
        current_month = _month_start(self._clock())
        record = self._records.get(user_id)
        if record is None:
            record = _UsageRecord(plan=self.default_plan, tokens_used=0, last_reset=current_month)
            self._records[user_id] = record
            logger.info(f"Created usage record for user {user_id} with {self.default_plan} plan")
        elif record.last_reset < current_month:
            record.tokens_used = 0
            record.last_reset = current_month
        return record

    def set_plan(self, user_id: str, plan: str) -> None:
        if plan not in self.plan_limits:
            raise UnknownPlanError(plan)
        with self._lock_for(user_id):
            self._record_for(user_id).plan = plan

    def check_budget(self, user_id: str, estimated_tokens: int) -> BudgetCheck:
        with self._lock_for(user_id):
            record = self._record_for(user_id)
            limit = self.plan_limits[record.plan]
            current = record.tokens_used

        total_after = current + estimated_tokens
        return BudgetCheck(
            allowed=total_after <= limit,
            remaining=max(0, limit - total_after),
            limit=limit,
            current=current,
        )

    def record_cost(self, user_id: str, tokens: int) -> None:
        if not user_id:
            raise ValueError("User ID is required to record token usage")
        if tokens <= 0:
            logger.warning(f"Skipping token recording: tokens is {tokens} (must be > 0)")
            return

        with self._lock_for(user_id):
            record = self._record_for(user_id)
            record.tokens_used += tokens
        logger.debug(f"Recorded {tokens} tokens for user {user_id}")

    def profile(self, user_id: str) -> UsageSnapshot:
        with self._lock_for(user_id):
            record = self._record_for(user_id)
            limit = self.plan_limits[record.plan]
            used = record.tokens_used
            plan = record.plan

        return UsageSnapshot(
            plan_name=plan,
            tokens_used=used,
            monthly_limit=limit,
            remaining=max(0, limit - used),
        )


class UsageReporter:
    """
    사용량 기록을 fire-and-forget으로 넘기는 컴포넌트

    report()는 Future를 반환하지만 classifier는 이를 기다리지 않습니다.
    테스트에서는 반환된 Future나 shutdown(wait=True)로 완료를 확인할 수 있습니다.
    """

    def __init__(self, store: BudgetOracle, executor: Optional[Executor] = None) -> None:
        self.store = store
        self._executor = executor or ThreadPoolExecutor(
            max_workers=USAGE_REPORTER_WORKERS,
            thread_name_prefix="usage-reporter",
        )

    def _record(self, user_id: str, tokens: int) -> None:
        try:
            self.store.record_cost(user_id, tokens)
        except Exception as e:
            logger.warning(f"Error recording token usage for user {user_id}: {e}")

    def report(self, user_id: str, tokens: int) -> Optional[Future]:
        if tokens <= 0:
            return None
        try:
            return self._executor.submit(self._record, user_id, tokens)
        except RuntimeError as e:
            # executor가 이미 종료된 경우
            logger.warning(f"Usage reporter unavailable, dropping {tokens} tokens for user {user_id}: {e}")
            return None

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
