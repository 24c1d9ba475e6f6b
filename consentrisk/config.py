# consentrisk/config.py
import os
from pathlib import Path

# 패키지 기준 경로
BASE_DIR = Path(__file__).resolve().parent


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"[config] invalid {name}={raw!r}, using {default}")
        return default


# ✅ 규칙 테이블(키워드/가중치/상한): 패키지 내 rules.yaml
RULES_PATH = os.getenv(
    "RULES_PATH",
    str(BASE_DIR / "rules.yaml")
)

# 서버 바인딩
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_int("PORT", 3000)

# ✅ 결과 화면 링크용 프론트엔드 주소 (비어 있으면 링크 생략)
FRONTEND_BASE_URL = os.getenv("FRONTEND_BASE_URL", "").strip().rstrip("/")

# 미리보기 글자 수 상한 (0 이하 = 자르지 않음). 채점은 항상 전체 텍스트로.
MAX_CHARS = _env_int("MAX_CHARS", 2000)

CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
] or ["*"]
