from __future__ import annotations

from consentrisk.summary import build_link, summarize


def test_no_truncation_when_under_limit() -> None:
    out = summarize("짧은 글", max_chars=100)
    assert out == {"truncated": False, "used_chars": 4, "total_chars": 4, "preview": "짧은 글"}


def test_zero_limit_disables_truncation() -> None:
    text = "가" * 5000
    out = summarize(text, max_chars=0)
    assert out["truncated"] is False
    assert out["used_chars"] == 5000
    assert out["preview"] == text


def test_truncation() -> None:
    out = summarize("abcdefghij", max_chars=5)
    assert out["truncated"] is True
    assert out["used_chars"] == 5
    assert out["total_chars"] == 10
    assert out["preview"] == "abcde…"


def test_exact_limit_is_not_truncated() -> None:
    out = summarize("abcde", max_chars=5)
    assert out["truncated"] is False
    assert out["preview"] == "abcde"


def test_link_omitted_without_base_url() -> None:
    assert "link" not in summarize("abc", max_chars=10, base_url="")
    assert "link" not in summarize("abc", max_chars=10, base_url=None)
    assert build_link("   ", "abc") is None


def test_link_strips_trailing_slash_and_encodes() -> None:
    assert build_link("https://consent.example.com/", "제3자 제공") == (
        "https://consent.example.com/result?text=%EC%A0%9C3%EC%9E%90%20%EC%A0%9C%EA%B3%B5"
    )


def test_link_uses_truncated_text() -> None:
    out = summarize("abcdefghij", max_chars=3, base_url="https://x.test")
    assert out["link"] == "https://x.test/result?text=abc"
