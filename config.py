"""
config.py
============================================================
환경 설정 (Intent Router)

모든 설정값은 import 시점에 환경변수(.env 포함)에서 한 번 읽습니다.
다른 모듈은 상수를 직접 import 해서 사용합니다: `from config import CHAT_MODEL`
"""

import os

from dotenv import load_dotenv

# .env는 기존 환경변수를 덮어쓰지 않음
load_dotenv(override=False)

# ============================================================
# LLM (structured selection oracle)
# ============================================================
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
CHAT_MODEL = os.getenv("CHAT_MODEL", "gpt-4o-mini")

# 분류는 일관성이 중요하므로 낮은 temperature
INTENT_TEMPERATURE = float(os.getenv("INTENT_TEMPERATURE", "0.1"))
INTENT_MAX_OUTPUT_TOKENS = int(os.getenv("INTENT_MAX_OUTPUT_TOKENS", "500"))

# 이 시간 안에 응답이 없으면 "no selection"으로 처리
INTENT_TIMEOUT_SECONDS = float(os.getenv("INTENT_TIMEOUT_SECONDS", "15"))

# ============================================================
# Usage metering
# ============================================================
# LLM 호출 전 예산 확인에 쓰는 고정 추정치 (보수적으로)
INTENT_ESTIMATED_TOKENS = int(os.getenv("INTENT_ESTIMATED_TOKENS", "500"))

FREE_PLAN_MONTHLY_TOKENS = int(os.getenv("FREE_PLAN_MONTHLY_TOKENS", "100000"))
PRO_PLAN_MONTHLY_TOKENS = int(os.getenv("PRO_PLAN_MONTHLY_TOKENS", "2000000"))
DEFAULT_PLAN = os.getenv("DEFAULT_PLAN", "free")

USAGE_REPORTER_WORKERS = int(os.getenv("USAGE_REPORTER_WORKERS", "2"))
