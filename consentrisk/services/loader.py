# consentrisk/services/loader.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from pathlib import Path

import yaml

from .. import config  # RULES_PATH

MODES = {"count", "presence", "distinct"}


class RuleConfigError(ValueError):
    """rules.yaml 형식 오류. 어떤 키가 잘못됐는지 메시지에 포함."""


# ----------------------------
# 규칙 데이터 (로드 후 불변)
# ----------------------------
@dataclass(frozen=True)
class RuleCategory:
    name: str
    mode: str                   # 'count' | 'presence' | 'distinct'
    keywords: Tuple[str, ...]
    weight: int                 # count/distinct: 1건당 점수, presence: 고정 점수
    cap: Optional[int] = None
    bullet: str = ""
    # 보고용 (점수 무관)
    report_keywords: Tuple[str, ...] = ()
    report: str = ""


@dataclass(frozen=True)
class Mitigation:
    name: str
    weight: int                 # 음수 (감점)
    label: str
    keywords: Tuple[str, ...]


@dataclass(frozen=True)
class RetentionLabel:
    descriptor: str
    text: str

    def format(self, n: int = 0) -> "RetentionLabel":
        return RetentionLabel(self.descriptor.format(n=n), self.text.format(n=n))


@dataclass(frozen=True)
class RetentionTier:
    min_years: int
    weight: int
    label: RetentionLabel


@dataclass(frozen=True)
class RetentionRule:
    indefinite: Tuple[str, ...]
    indefinite_weight: int
    indefinite_label: RetentionLabel
    tiers: Tuple[RetentionTier, ...]     # min_years 내림차순
    unspecified_label: RetentionLabel
    event_driven: Tuple[str, ...]
    event_label: RetentionLabel
    year_ceiling: int
    bullet: str


@dataclass(frozen=True)
class RuleSet:
    categories: Tuple[RuleCategory, ...]
    retention: RetentionRule
    mitigations: Tuple[Mitigation, ...]
    mitigation_bullet: str
    short_text_chars: int
    short_text_penalty: int
    level_bins: Tuple[Tuple[int, int, str], ...]
    label_text: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class CompletenessSection:
    name: str
    weight: int
    keywords: Tuple[str, ...]
    suggestion: str


@dataclass(frozen=True)
class CompletenessRules:
    sections: Tuple[CompletenessSection, ...]
    length_penalties: Tuple[Tuple[int, int], ...]   # (min_chars, penalty)
    remarks: Tuple[Tuple[int, str], ...]            # (min_score, remark), 높은 점수부터
    max_suggestions: int


# ----------------------------
# 공통 유틸
# ----------------------------
def _as_path(p: Optional[str | Path]) -> Path:
    return Path(p) if p else Path(config.RULES_PATH)


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise RuleConfigError(f"rules file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuleConfigError(f"rules file is not valid YAML: {path} -> {e}") from e
    if not isinstance(data, dict):
        raise RuleConfigError(f"rules file must be a mapping: {path}")
    return data


def _section(d: Dict[str, Any], key: str, where: str) -> Dict[str, Any]:
    v = d.get(key)
    if not isinstance(v, dict):
        raise RuleConfigError(f"{where}.{key}: expected a mapping")
    return v


def _int(d: Dict[str, Any], key: str, where: str, default: Optional[int] = None) -> int:
    v = d.get(key, default)
    if isinstance(v, bool) or not isinstance(v, int):
        raise RuleConfigError(f"{where}.{key}: expected an integer, got {v!r}")
    return v


def _keywords(d: Dict[str, Any], where: str, key: str = "keywords") -> Tuple[str, ...]:
    raw = d.get(key)
    if not isinstance(raw, list):
        raise RuleConfigError(f"{where}.{key}: expected a list of strings")
    kws = [str(x) for x in raw if isinstance(x, (str, int)) and str(x)]
    if not kws:
        raise RuleConfigError(f"{where}.{key}: empty keyword list")
    # 순서 유지 중복 제거
    return tuple(dict.fromkeys(kws))


# ----------------------------
# 위험도 규칙 파서
# ----------------------------
def _parse_category(d: Any, idx: int) -> RuleCategory:
    where = f"risk.categories[{idx}]"
    if not isinstance(d, dict):
        raise RuleConfigError(f"{where}: expected a mapping")
    name = str(d.get("name") or "").strip()
    if not name:
        raise RuleConfigError(f"{where}.name: missing")
    where = f"risk.categories[{name}]"
    mode = str(d.get("mode") or "").strip().lower()
    if mode not in MODES:
        raise RuleConfigError(f"{where}.mode: expected one of {sorted(MODES)}, got {mode!r}")
    cap = d.get("cap")
    if cap is not None:
        cap = _int(d, "cap", where)
    report = d.get("report") or {}
    if not isinstance(report, dict):
        raise RuleConfigError(f"{where}.report: expected a mapping")
    return RuleCategory(
        name=name,
        mode=mode,
        keywords=_keywords(d, where),
        weight=_int(d, "weight", where),
        cap=cap,
        bullet=str(d.get("bullet") or f"{name}: {{value}}"),
        report_keywords=_keywords(report, f"{where}.report") if report else (),
        report=str(report.get("template") or ""),
    )


def _label(d: Dict[str, Any], where: str) -> RetentionLabel:
    desc = d.get("descriptor")
    if not isinstance(desc, str) or not desc:
        raise RuleConfigError(f"{where}.descriptor: missing")
    return RetentionLabel(descriptor=desc, text=str(d.get("text") or desc))


def _parse_retention(d: Dict[str, Any]) -> RetentionRule:
    where = "risk.retention"
    indef = _section(d, "indefinite", where)
    event = _section(d, "event_driven", where)
    tiers: List[RetentionTier] = []
    for i, t in enumerate(d.get("tiers") or []):
        tw = f"{where}.tiers[{i}]"
        if not isinstance(t, dict):
            raise RuleConfigError(f"{tw}: expected a mapping")
        tiers.append(RetentionTier(
            min_years=_int(t, "min_years", tw),
            weight=_int(t, "weight", tw),
            label=_label(t, tw),
        ))
    tiers.sort(key=lambda t: t.min_years, reverse=True)
    return RetentionRule(
        indefinite=_keywords(indef, f"{where}.indefinite"),
        indefinite_weight=_int(indef, "weight", f"{where}.indefinite"),
        indefinite_label=_label(indef, f"{where}.indefinite"),
        tiers=tuple(tiers),
        unspecified_label=_label(_section(d, "unspecified", where), f"{where}.unspecified"),
        event_driven=_keywords(event, f"{where}.event_driven"),
        event_label=_label(event, f"{where}.event_driven"),
        year_ceiling=_int(d, "year_ceiling", where, default=100),
        bullet=str(d.get("bullet") or "retention: {value}"),
    )


def _parse_mitigations(d: Dict[str, Any]) -> Tuple[str, Tuple[Mitigation, ...]]:
    where = "risk.mitigations"
    out: List[Mitigation] = []
    for i, m in enumerate(d.get("items") or []):
        if not isinstance(m, dict):
            raise RuleConfigError(f"{where}.items[{i}]: expected a mapping")
        name = str(m.get("name") or f"mitigation_{i}")
        out.append(Mitigation(
            name=name,
            weight=_int(m, "weight", f"{where}.{name}"),
            label=str(m.get("label") or name),
            keywords=_keywords(m, f"{where}.{name}"),
        ))
    return str(d.get("bullet") or "mitigations: {value}"), tuple(out)


def _parse_level_bins(raw: Any) -> Tuple[Tuple[int, int, str], ...]:
    where = "risk.level_bins"
    if not isinstance(raw, list) or not raw:
        raise RuleConfigError(f"{where}: expected a non-empty list of [lo, hi, label]")
    bins: List[Tuple[int, int, str]] = []
    for i, b in enumerate(raw):
        if not isinstance(b, (list, tuple)) or len(b) != 3:
            raise RuleConfigError(f"{where}[{i}]: expected [lo, hi, label]")
        lo, hi, lab = b
        if not isinstance(lo, int) or not isinstance(hi, int) or hi <= lo:
            raise RuleConfigError(f"{where}[{i}]: invalid bounds {lo!r}..{hi!r}")
        bins.append((lo, hi, str(lab)))
    bins.sort(key=lambda b: b[0])
    # 0~100 전 구간을 빈틈없이 덮어야 함
    if bins[0][0] > 0 or bins[-1][1] <= 100:
        raise RuleConfigError(f"{where}: bins must cover 0..100")
    for (_, hi, _), (lo, _, lab) in zip(bins, bins[1:]):
        if hi != lo:
            raise RuleConfigError(f"{where}: gap or overlap before {lab!r}")
    return tuple(bins)


def parse_rules(data: Dict[str, Any]) -> RuleSet:
    risk = _section(data, "risk", "rules")
    cats_raw = risk.get("categories")
    if not isinstance(cats_raw, list) or not cats_raw:
        raise RuleConfigError("risk.categories: expected a non-empty list")
    categories = tuple(_parse_category(c, i) for i, c in enumerate(cats_raw))

    short = _section(risk, "short_text", "risk")
    mit_bullet, mitigations = _parse_mitigations(_section(risk, "mitigations", "risk"))

    return RuleSet(
        categories=categories,
        retention=_parse_retention(_section(risk, "retention", "risk")),
        mitigations=mitigations,
        mitigation_bullet=mit_bullet,
        short_text_chars=_int(short, "min_chars", "risk.short_text"),
        short_text_penalty=_int(short, "penalty", "risk.short_text"),
        level_bins=_parse_level_bins(risk.get("level_bins")),
        label_text={str(k): str(v) for k, v in (risk.get("label_text") or {}).items()},
    )


def parse_completeness(data: Dict[str, Any]) -> CompletenessRules:
    comp = _section(data, "completeness", "rules")
    sections: List[CompletenessSection] = []
    for i, s in enumerate(comp.get("sections") or []):
        where = f"completeness.sections[{i}]"
        if not isinstance(s, dict) or not s.get("name"):
            raise RuleConfigError(f"{where}: expected a mapping with a name")
        sections.append(CompletenessSection(
            name=str(s["name"]),
            weight=_int(s, "weight", where),
            keywords=_keywords(s, where),
            suggestion=str(s.get("suggestion") or f"Consider adding: {s['name']}"),
        ))
    if not sections:
        raise RuleConfigError("completeness.sections: empty")

    penalties = sorted(
        ((int(a), int(b)) for a, b in (comp.get("length_penalties") or [])),
        key=lambda p: p[0],
    )
    remarks = sorted(
        ((int(a), str(b)) for a, b in (comp.get("remarks") or [[0, "Poor"]])),
        key=lambda r: r[0],
        reverse=True,
    )
    return CompletenessRules(
        sections=tuple(sections),
        length_penalties=tuple(penalties),
        remarks=tuple(remarks),
        max_suggestions=_int(comp, "max_suggestions", "completeness", default=3),
    )


# ----------------------------
# 규칙 로더
# ----------------------------
def load_rules(path: Optional[str | Path] = None) -> RuleSet:
    """rules.yaml 의 risk 섹션을 RuleSet 으로 로드 (형식 오류 시 RuleConfigError)."""
    rules_path = _as_path(path)
    rs = parse_rules(_read_yaml(rules_path))
    print(
        "[rules] load_rules: "
        f"categories={len(rs.categories)}, "
        f"mitigations={len(rs.mitigations)}, "
        f"bins={len(rs.level_bins)} from {rules_path.name}"
    )
    return rs


def load_completeness(path: Optional[str | Path] = None) -> CompletenessRules:
    rules_path = _as_path(path)
    cr = parse_completeness(_read_yaml(rules_path))
    print(f"[rules] load_completeness: sections={len(cr.sections)} from {rules_path.name}")
    return cr


def debug_summary(rs: Optional[RuleSet] = None, path: Optional[str | Path] = None) -> Dict[str, Any]:
    """이미 로드된 RuleSet 요약 (없을 때만 파일에서 로드)."""
    if rs is None:
        rs = load_rules(path)
    return {
        "rules_path": str(_as_path(path)),
        "categories": {
            c.name: {"mode": c.mode, "weight": c.weight, "cap": c.cap, "keywords": len(c.keywords)}
            for c in rs.categories
        },
        "mitigations": {m.name: m.weight for m in rs.mitigations},
        "level_bins": [list(b) for b in rs.level_bins],
    }


if __name__ == "__main__":
    print("[rules] summary:", debug_summary())
