"""Tests for feedback_assistant.assistant.projector."""

from feedback_assistant.assistant import Summary, project_summary


def test_full_payload(summary_payload):
    summary = project_summary(summary_payload)

    assert summary.text.startswith("Customers love")
    assert summary.top_issues == ("Slow service", "Noisy room", "Few vegan options")
    assert summary.from_cache is True
    assert summary.generated_at == "2026-10-01T09:30:00Z"
    assert summary.limit_reached is False


def test_content_free_payload_is_absent():
    assert project_summary({"summary": "", "topIssues": [], "topStrengths": []}) is None


def test_blank_text_is_absent():
    assert project_summary({"summary": "   \n"}) is None


def test_empty_object_is_absent():
    assert project_summary({}) is None


def test_lists_alone_are_enough():
    summary = project_summary({"topStrengths": ["Price"]})
    assert summary == Summary(text="", top_issues=(), top_strengths=("Price",))


def test_text_key_is_accepted():
    assert project_summary({"text": "Mostly positive."}).text == "Mostly positive."


def test_non_string_items_are_dropped():
    summary = project_summary({"summary": "ok", "topIssues": ["Queue", 4, None]})
    assert summary.top_issues == ("Queue",)


def test_limit_reached_flag():
    assert project_summary({"summary": "ok", "limitReached": True}).limit_reached is True
