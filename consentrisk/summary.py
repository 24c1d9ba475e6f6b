# consentrisk/summary.py
from typing import Any, Dict, Optional
from urllib.parse import quote

ELLIPSIS = "…"


def build_link(base_url: Optional[str], text: str) -> Optional[str]:
    """전체 결과 화면 링크. base_url 이 비어 있으면 None."""
    base = (base_url or "").strip().rstrip("/")
    if not base:
        return None
    return f"{base}/result?text={quote(text, safe='')}"


def summarize(text: str, max_chars: int = 0, base_url: Optional[str] = None) -> Dict[str, Any]:
    """
    응답에 붙는 미리보기 정보.
    - max_chars <= 0 이면 자르지 않음
    - 채점은 호출 측에서 원문 전체로 수행 (여기서는 표시용만)
    """
    text = text or ""
    total = len(text)
    truncated = 0 < max_chars < total
    shown = text[:max_chars] if truncated else text

    out: Dict[str, Any] = {
        "truncated": truncated,
        "used_chars": len(shown),
        "total_chars": total,
        "preview": shown + ELLIPSIS if truncated else shown,
    }
    link = build_link(base_url, shown)
    if link:
        out["link"] = link
    return out
