"""
Tests for services/email_service.py
"""

from datetime import UTC, datetime

from coachslots.services import email_service


def test_confirmation_is_rendered_in_prospect_timezone():
    html = email_service.build_intake_confirmation_html(
        prospect_name="Jamie",
        call_name="Discovery call",
        start=datetime(2026, 1, 5, 14, 0, tzinfo=UTC),
        end=datetime(2026, 1, 5, 14, 30, tzinfo=UTC),
        timezone="America/New_York",
    )
    assert "Monday, January 05, 2026" in html
    assert "09:00 AM" in html
    assert "09:30 AM" in html
    assert "America/New_York" in html


def test_confirmation_escapes_user_input():
    html = email_service.build_intake_confirmation_html(
        prospect_name="<script>alert(1)</script>",
        call_name="Intro & chat",
        start=datetime(2026, 1, 5, 14, 0, tzinfo=UTC),
        end=datetime(2026, 1, 5, 14, 30, tzinfo=UTC),
        timezone=None,
    )
    assert "<script>" not in html
    assert "Intro &amp; chat" in html
    assert "(UTC)" in html


def test_send_is_skipped_without_smtp(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("SMTP should not be used")

    monkeypatch.setattr(email_service.smtplib, "SMTP", fail)
    email_service.send_intake_confirmation_email(
        to_email="jamie@acme.io",
        prospect_name="Jamie",
        call_name="Discovery call",
        start=datetime(2026, 1, 5, 14, 0, tzinfo=UTC),
        end=datetime(2026, 1, 5, 14, 30, tzinfo=UTC),
    )
