# consentrisk/main.py
from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, PlainTextResponse

from . import config
from .completeness import get_checker
from .risk_scorer import get_scorer
from .services.loader import debug_summary
from .summary import summarize

# ──────────────────────────────────────────────────────────────────────
# FastAPI 앱
# ──────────────────────────────────────────────────────────────────────
app = FastAPI(title="Consent Risk Checker", default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 규칙 테이블은 기동 시 한 번 로드 (형식 오류면 여기서 RuleConfigError)
scorer = get_scorer()
checker = get_checker()


# ──────────────────────────────────────────────────────────────────────
# 유틸
# ──────────────────────────────────────────────────────────────────────
def ensure_utf8_bytes(b: bytes) -> bytes:
    """요청 바이트를 UTF-8로 강제. UTF-16(BOM)/CP949 폴백 지원."""
    try:
        b.decode("utf-8")
        return b
    except UnicodeDecodeError:
        pass
    # BOM 없는 바이트는 utf-16 으로도 거의 항상 디코딩되므로 BOM 있을 때만
    encs = ("utf-16",) if b[:2] in (b"\xff\xfe", b"\xfe\xff") else ("cp949",)
    for enc in encs:
        try:
            return b.decode(enc).encode("utf-8")
        except UnicodeDecodeError:
            continue
    return b


def extract_text(raw: bytes) -> str:
    """
    POST 본문에서 채점할 텍스트 추출.
    - {"text": "..."} / "..." (JSON 문자열) / 그냥 평문 모두 허용
    - 그 외 JSON 값(숫자, 배열, text 없는 객체)은 빈 문자열
    """
    s = ensure_utf8_bytes(raw).decode("utf-8", errors="replace")
    if not s.strip():
        return ""
    try:
        data = json.loads(s)
    except json.JSONDecodeError:
        return s
    if isinstance(data, dict):
        v = data.get("text")
        return v if isinstance(v, str) else ""
    if isinstance(data, str):
        return data
    return ""


def build_response(text: str) -> Dict[str, Any]:
    # 채점은 항상 원문 전체, 자르기는 미리보기에만 적용
    res = scorer.score(text)
    out = res.to_dict()
    # 구버전 프론트 호환 키
    out["riskScore"] = res.score
    out["issues"] = list(res.bullets)
    out["result"] = {"score": res.score, "label": res.label, "bullets": list(res.bullets)}
    out.update(summarize(text, config.MAX_CHARS, config.FRONTEND_BASE_URL))
    return out


@app.on_event("startup")
def _startup() -> None:
    print(f"[api] consent checker ready (port={config.PORT}, max_chars={config.MAX_CHARS}, "
          f"link={'on' if config.FRONTEND_BASE_URL else 'off'})")


# ──────────────────────────────────────────────────────────────────────
# 엔드포인트
# ──────────────────────────────────────────────────────────────────────
@app.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "Consent checker running. Use /api/check to evaluate a consent text."


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/check")
def check_get(text: str = "") -> Dict[str, Any]:
    return build_response(text)


@app.post("/api/check")
async def check_post(request: Request) -> Dict[str, Any]:
    text = extract_text(await request.body())
    return build_response(text)


@app.post("/api/completeness")
async def completeness(request: Request) -> Dict[str, Any]:
    text = extract_text(await request.body())
    return checker.check(text)


@app.get("/debug/rules")
def debug_rules() -> Dict[str, Any]:
    return {
        **debug_summary(scorer.rules),
        "max_chars": config.MAX_CHARS,
        "frontend_base_url": config.FRONTEND_BASE_URL or None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
