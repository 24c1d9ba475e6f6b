from __future__ import annotations

import pytest

from consentrisk.risk_scorer import RiskScorer
from consentrisk.services.loader import (
    RuleConfigError,
    debug_summary,
    load_completeness,
    load_rules,
    parse_completeness,
    parse_rules,
)


def test_packaged_rules_load() -> None:
    rs = load_rules()
    assert [c.name for c in rs.categories] == ["third_party", "sensitive", "marketing", "data_categories"]
    assert [c.mode for c in rs.categories] == ["count", "presence", "presence", "distinct"]
    third = rs.categories[0]
    assert (third.weight, third.cap) == (5, 30)
    assert third.report_keywords == ("주식회사", "㈜", "유한회사")
    assert [(t.min_years, t.weight) for t in rs.retention.tiers] == [(3, 10), (1, 5)]
    assert rs.retention.year_ceiling == 100
    assert {m.name: m.weight for m in rs.mitigations} == {"opt_out": -10, "anonymization": -5}
    assert rs.level_bins[0] == (0, 30, "good")
    assert (rs.short_text_chars, rs.short_text_penalty) == (50, 10)


def test_missing_file(tmp_path) -> None:
    with pytest.raises(RuleConfigError, match="not found"):
        load_rules(tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path) -> None:
    p = tmp_path / "rules.yaml"
    p.write_text("risk: [unclosed", encoding="utf-8")
    with pytest.raises(RuleConfigError, match="not valid YAML"):
        load_rules(p)


def test_bad_mode(rules_copy) -> None:
    rules_copy["risk"]["categories"][0]["mode"] = "sum"
    with pytest.raises(RuleConfigError, match=r"third_party\]\.mode"):
        parse_rules(rules_copy)


def test_non_integer_weight(rules_copy) -> None:
    rules_copy["risk"]["categories"][1]["weight"] = "25"
    with pytest.raises(RuleConfigError, match="weight"):
        parse_rules(rules_copy)


def test_empty_keywords(rules_copy) -> None:
    rules_copy["risk"]["categories"][2]["keywords"] = []
    with pytest.raises(RuleConfigError, match="empty keyword list"):
        parse_rules(rules_copy)


def test_level_bins_gap(rules_copy) -> None:
    rules_copy["risk"]["level_bins"] = [[0, 30, "good"], [40, 101, "danger"]]
    with pytest.raises(RuleConfigError, match="gap or overlap"):
        parse_rules(rules_copy)


def test_level_bins_must_reach_100(rules_copy) -> None:
    rules_copy["risk"]["level_bins"] = [[0, 50, "good"], [50, 100, "danger"]]
    with pytest.raises(RuleConfigError, match="cover 0..100"):
        parse_rules(rules_copy)


def test_retention_descriptor_required(rules_copy) -> None:
    del rules_copy["risk"]["retention"]["unspecified"]["descriptor"]
    with pytest.raises(RuleConfigError, match="unspecified.descriptor"):
        parse_rules(rules_copy)


def test_custom_rules_change_scoring(rules_copy) -> None:
    rules_copy["risk"]["categories"][2]["weight"] = 40
    scorer = RiskScorer(rules=parse_rules(rules_copy))
    res = scorer.score("마케팅" + "." * 60)
    assert res.parts["marketing"] == 40
    assert res.score == 40
    assert res.label == "low"


def test_tiers_sorted_descending(rules_copy) -> None:
    rules_copy["risk"]["retention"]["tiers"].reverse()
    rs = parse_rules(rules_copy)
    assert [t.min_years for t in rs.retention.tiers] == [3, 1]


def test_completeness_rules() -> None:
    cr = load_completeness()
    assert sum(s.weight for s in cr.sections) == 100
    assert cr.length_penalties == ((50, 30), (200, 10))
    assert cr.remarks[0] == (85, "Excellent")
    assert cr.max_suggestions == 3


def test_completeness_requires_sections(rules_copy) -> None:
    rules_copy["completeness"]["sections"] = []
    with pytest.raises(RuleConfigError, match="completeness.sections"):
        parse_completeness(rules_copy)


def test_debug_summary() -> None:
    s = debug_summary()
    assert s["categories"]["data_categories"] == {"mode": "distinct", "weight": 2, "cap": 20, "keywords": 16}
    assert s["mitigations"] == {"opt_out": -10, "anonymization": -5}


def test_debug_summary_uses_loaded_rules(monkeypatch, scorer) -> None:
    from consentrisk.services import loader

    def _fail(path=None):
        raise AssertionError("rules reloaded")

    monkeypatch.setattr(loader, "load_rules", _fail)
    s = loader.debug_summary(scorer.rules)
    assert s["categories"]["third_party"] == {"mode": "count", "weight": 5, "cap": 30, "keywords": 8}
