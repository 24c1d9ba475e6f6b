# consentrisk/completeness.py
# 필수 기재 항목 점검: 위험도와 별개로 "동의서가 얼마나 갖춰졌는지" 점수화
from typing import Any, Dict, Optional

from .services.loader import CompletenessRules, load_completeness


class CompletenessChecker:
    def __init__(self, rules: Optional[CompletenessRules] = None, cfg_path: Optional[str] = None):
        self.rules = rules or load_completeness(cfg_path)

    def _remark(self, score: int) -> str:
        for min_score, remark in self.rules.remarks:
            if score >= min_score:
                return remark
        return self.rules.remarks[-1][1]

    def check(self, text: Any) -> Dict[str, Any]:
        t = (text if isinstance(text, str) else "").strip()
        if not t:
            return {
                "score": 0,
                "remark": "No text provided",
                "details": {},
                "missing": ["entire document"],
                "suggestions": [],
            }

        lower = t.lower()
        raw = 0
        details: Dict[str, bool] = {}
        missing = []
        for sec in self.rules.sections:
            found = any(k.lower() in lower for k in sec.keywords)
            details[sec.name] = found
            if found:
                raw += sec.weight
            else:
                missing.append(sec)

        # 짧은 문서 감점 (가장 엄한 구간 하나만)
        for min_chars, penalty in self.rules.length_penalties:
            if len(t) < min_chars:
                raw = max(0, raw - penalty)
                break

        score = max(0, min(100, raw))
        return {
            "score": score,
            "remark": self._remark(score),
            "details": details,
            "missing": [s.name for s in missing],
            "suggestions": [s.suggestion for s in missing[: self.rules.max_suggestions]],
        }


_DEFAULT: Optional[CompletenessChecker] = None


def get_checker() -> CompletenessChecker:
    global _DEFAULT
    if _DEFAULT is None:
        _DEFAULT = CompletenessChecker()
    return _DEFAULT
