import pytest

from hireall.utils import spam_detection
from hireall.utils.spam_detection import (
    analyze_content,
    check_email,
    check_for_spam,
    check_name,
    get_spam_stats,
)

CLEAN = {
    "name": "Jane Doe",
    "email": "jane.doe@example.com",
    "subject": "Pricing",
    "message": "Hi, I'd like to know more about the premium plan for my team.",
}


def submit(ip="10.0.0.1", **overrides):
    data = {**CLEAN, **overrides}
    return check_for_spam(ip=ip, **data)


def test_clean_submission_passes():
    result = submit(loaded_at=0, submitted_at=30_000)
    assert not result.is_spam
    assert not result.should_block
    assert result.score == 0


def test_honeypot_blocks():
    result = submit(honeypot="http://spam.example")
    assert result.should_block
    assert "Honeypot field filled" in result.reasons


@pytest.mark.parametrize("fill_ms, points", [(1_500, 50), (4_000, 20), (6_000, 0)])
def test_fill_time(fill_ms, points):
    result = submit(loaded_at=1_000, submitted_at=1_000 + fill_ms)
    assert result.score == points


def test_fourth_submission_in_an_hour_is_blocked(monkeypatch):
    monkeypatch.setattr(spam_detection, "_now_ms", lambda: 10_000)
    for _ in range(3):
        assert not submit(ip="1.2.3.4").should_block

    result = submit(ip="1.2.3.4")
    assert result.should_block
    assert get_spam_stats() == {"tracked_ips": 1, "blocked_count": 1}

    assert not submit(ip="5.6.7.8").should_block


def test_submission_window_expires(monkeypatch):
    now = {"ms": 0}
    monkeypatch.setattr(spam_detection, "_now_ms", lambda: now["ms"])
    for _ in range(3):
        submit(ip="1.2.3.4")

    now["ms"] = spam_detection.SUBMISSION_WINDOW_MS + 1
    assert not submit(ip="1.2.3.4").should_block


def test_disposable_email_is_spam_but_stored():
    result = submit(email="someone@mailinator.com")
    assert result.is_spam
    assert not result.should_block


def test_check_email_auto_generated():
    score, reasons = check_email("ab123456c@example.com")
    assert "Email looks auto-generated" in reasons
    assert "Email contains many consecutive numbers" in reasons
    assert score == 40


def test_content_keywords_and_links():
    score, reasons = analyze_content("Buy followers, backlink deals, click here https://spam.example.com")
    assert any(r.startswith("Spam keywords detected") for r in reasons)
    assert score >= 50


def test_many_links_and_short_messages():
    links = " ".join(f"https://site{i}.example.com" for i in range(3))
    score, reasons = analyze_content(f"See {links}")
    assert "Multiple URLs detected (3)" in reasons

    score, reasons = analyze_content("hi")
    assert reasons == ["Message too short"]
    assert score == 20


def test_check_name():
    assert check_name("Jane")[0] == 0
    assert check_name("12345") == (40, ["Name is only numbers"])
    score, reasons = check_name("www.spam.com")
    assert score == 50
