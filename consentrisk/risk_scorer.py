# consentrisk/risk_scorer.py
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Tuple
import re

from .services.loader import (
    Mitigation,
    RetentionLabel,
    RuleCategory,
    RuleSet,
    load_rules,
)

NO_CONTENT = "no-content"

# 불릿 표시 문구
YES, NO = "예", "아니오"
PRESENT, ABSENT = "있음", "없음"

# "N년" (숫자 + 년, 사이 공백 허용)
_YEAR_RX = re.compile(r"([0-9]+)\s*년")


# ----------------------------
# 결과
# ----------------------------
@dataclass
class AnalysisResult:
    score: int                          # 0~100
    label: str                          # no-content | good | low | caution | danger
    bullets: List[str]
    parts: Dict[str, int] = field(default_factory=dict)
    retention: str = ""                 # 보유기간 식별 문구 (영문 고정값)
    label_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "label": self.label,
            "label_text": self.label_text,
            "bullets": list(self.bullets),
            "parts": dict(self.parts),
            "retention": self.retention,
        }


# ----------------------------
# 위험도 스코어러
# ----------------------------
class RiskScorer:
    """
    동의서 텍스트 → 위험 점수(0~100) / 등급 / 설명 불릿.
    규칙 테이블은 생성 시 한 번만 로드하고 이후 읽기만 함 (동시 호출 안전).
    """

    def __init__(self, rules: Optional[RuleSet] = None, cfg_path: Optional[str] = None):
        self.rules = rules or load_rules(cfg_path)

        # count 모드는 키워드별 등장 횟수가 필요하므로 미리 컴파일
        self._count_patterns: Dict[str, List[re.Pattern]] = {}
        for cat in self.rules.categories:
            if cat.mode == "count":
                self._count_patterns[cat.name] = [re.compile(re.escape(k)) for k in cat.keywords]

    # ---- 개별 신호 ----
    def _score_category(self, cat: RuleCategory, t: str) -> Tuple[int, int]:
        """(점수, 히트 수). count: 총 등장 횟수 / presence: 0|1 / distinct: 서로 다른 키워드 수"""
        if cat.mode == "count":
            hits = sum(len(p.findall(t)) for p in self._count_patterns[cat.name])
            points = hits * cat.weight
        elif cat.mode == "presence":
            hits = 1 if any(k in t for k in cat.keywords) else 0
            points = cat.weight if hits else 0
        else:
            hits = sum(1 for k in cat.keywords if k in t)
            points = hits * cat.weight
        if cat.cap is not None:
            points = min(cat.cap, points)
        return points, hits

    def _bullet(self, cat: RuleCategory, hits: int, t: str) -> str:
        if cat.mode == "count":
            value = PRESENT if hits > 0 else ABSENT
        elif cat.mode == "presence":
            value = YES if hits else NO
        else:
            value = str(hits)

        extra = ""
        if cat.report_keywords and cat.report:
            n = sum(t.count(k) for k in cat.report_keywords)
            if n > 0:
                extra = cat.report.format(count=n)
        return cat.bullet.format(value=value, extra=extra)

    def max_years(self, t: str) -> int:
        """본문의 'N년' 중 보유기간으로 볼 수 있는 최댓값 (연도 표기 제외, 없으면 0)."""
        ceiling = self.rules.retention.year_ceiling
        # 자릿수가 상한 이상이면 값도 상한 이상 (아주 긴 숫자열은 int 변환 전에 제외)
        digits = [m.lstrip("0") or "0" for m in _YEAR_RX.findall(t)]
        years = [int(d) for d in digits if len(d) <= len(str(ceiling))]
        return max((y for y in years if y < ceiling), default=0)

    def _score_retention(self, t: str) -> Tuple[int, RetentionLabel]:
        r = self.rules.retention
        # 무기한 문구가 있으면 숫자 스캔 생략
        if any(k in t for k in r.indefinite):
            return r.indefinite_weight, r.indefinite_label

        n = self.max_years(t)
        points, label = 0, r.unspecified_label
        for tier in r.tiers:
            if n >= tier.min_years:
                points, label = tier.weight, tier.label.format(n)
                break

        # 목적 달성/파기 문구는 설명만 덮어씀 (점수 유지)
        if any(k in t for k in r.event_driven):
            label = r.event_label
        return points, label

    def _active_mitigations(self, t: str) -> List[Mitigation]:
        return [m for m in self.rules.mitigations if any(k in t for k in m.keywords)]

    def level(self, score: int) -> str:
        for lo, hi, lab in self.rules.level_bins:
            if lo <= score < hi:
                return lab
        return self.rules.level_bins[-1][2]

    # ---- 최종 ----
    def score(self, text: Any) -> AnalysisResult:
        t = text if isinstance(text, str) else ""
        if not t.strip():
            return AnalysisResult(
                score=0,
                label=NO_CONTENT,
                bullets=[],
                label_text=self.rules.label_text.get(NO_CONTENT, ""),
            )

        parts: Dict[str, int] = {}
        bullets: List[str] = []

        for cat in self.rules.categories:
            points, hits = self._score_category(cat, t)
            parts[cat.name] = points
            bullets.append(self._bullet(cat, hits, t))

        ret_points, ret_label = self._score_retention(t)
        parts["retention"] = ret_points
        bullets.append(self.rules.retention.bullet.format(value=ret_label.text))

        mitigations = self._active_mitigations(t)
        parts["mitigation"] = sum(m.weight for m in mitigations)
        if mitigations:
            bullets.append(self.rules.mitigation_bullet.format(
                value=", ".join(m.label for m in mitigations)
            ))

        parts["short_text"] = -self.rules.short_text_penalty if len(t) < self.rules.short_text_chars else 0

        # 중간 합계는 음수일 수 있음
        total = max(0, min(100, sum(parts.values())))
        label = self.level(total)
        return AnalysisResult(
            score=total,
            label=label,
            bullets=bullets,
            parts=parts,
            retention=ret_label.descriptor,
            label_text=self.rules.label_text.get(label, label),
        )


# ----------------------------
# 기본 스코어러 (패키지 rules.yaml)
# ----------------------------
_DEFAULT: Optional[RiskScorer] = None


def get_scorer() -> RiskScorer:
    global _DEFAULT
    if _DEFAULT is None:
        _DEFAULT = RiskScorer()
    return _DEFAULT


def score(text: Any) -> AnalysisResult:
    return get_scorer().score(text)
