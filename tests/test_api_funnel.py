"""
Tests for the intake-config endpoints and the public funnel scheduling step.
"""

from datetime import UTC, datetime, time, timedelta

import pytest

from coachslots.core.security import create_access_token

from conftest import OTHER_ORG_ID, auth, every_day

CONFIGS_URL = "/api/coach/intake-configs"
FUNNEL_SLOTS_URL = "/api/funnel/scheduling/slots"
BOOK_URL = "/api/funnel/scheduling/book"


def _at(day, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=UTC)


def _create_config(client, token, **fields) -> dict:
    body = {"name": "Discovery call", **fields}
    resp = client.post(CONFIGS_URL, json=body, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


def _slots(client, config_id, day):
    return client.get(
        FUNNEL_SLOTS_URL,
        params={"intakeConfigId": config_id, "startDate": day.isoformat(), "endDate": day.isoformat()},
    )


def _book(client, config_id, start, end, **fields):
    body = {
        "intakeCallConfigId": config_id,
        "startDateTime": start.isoformat(),
        "endDateTime": end.isoformat(),
        "name": "Jamie Rivera",
        "email": "Jamie.Rivera@Acme.io",
        **fields,
    }
    return client.post(BOOK_URL, json=body)


class TestIntakeConfigs:
    def test_create_and_list(self, client, coach_token):
        created = _create_config(client, coach_token, description="First chat")
        assert created["duration"] == 30
        assert created["is_active"] is True
        assert created["use_custom_availability"] is False

        resp = client.get(CONFIGS_URL, headers=auth(coach_token))
        assert resp.status_code == 200
        assert [c["id"] for c in resp.json()] == [created["id"]]

    def test_list_is_scoped_to_organization(self, client, coach_token):
        _create_config(client, coach_token)
        other = create_access_token("user_other", organization_id=OTHER_ORG_ID, role="coach")
        resp = client.get(CONFIGS_URL, headers=auth(other))
        assert resp.json() == []

    def test_patch(self, client, coach_token):
        created = _create_config(client, coach_token, description="First chat")
        resp = client.patch(
            f"{CONFIGS_URL}/{created['id']}",
            json={"duration": 45, "description": None},
            headers=auth(coach_token),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["duration"] == 45
        assert body["description"] is None
        assert body["name"] == "Discovery call"

    def test_patch_other_organization_is_404(self, client, coach_token):
        created = _create_config(client, coach_token)
        other = create_access_token("user_other", organization_id=OTHER_ORG_ID, role="coach")
        resp = client.patch(f"{CONFIGS_URL}/{created['id']}", json={"duration": 45}, headers=auth(other))
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Intake config not found"

    def test_members_cannot_manage_configs(self, client, member_token):
        assert client.get(CONFIGS_URL, headers=auth(member_token)).status_code == 403

    @pytest.mark.parametrize(
        "body",
        [
            {"name": ""},
            {"name": "Call", "duration": 0},
            {"name": "Call", "custom_weekly_schedule": {"2": [{"start": "11:00", "end": "10:00"}]}},
        ],
    )
    def test_invalid_config_is_422(self, client, coach_token, body):
        resp = client.post(CONFIGS_URL, json=body, headers=auth(coach_token))
        assert resp.status_code == 422


class TestFunnelSlots:
    def test_config_id_required(self, client):
        resp = client.get(FUNNEL_SLOTS_URL, params={"startDate": "2026-01-05", "endDate": "2026-01-06"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "intakeConfigId is required"

    def test_date_range_required(self, client, coach_token):
        config = _create_config(client, coach_token)
        resp = client.get(FUNNEL_SLOTS_URL, params={"intakeConfigId": config["id"]})
        assert resp.status_code == 400

    def test_unknown_config(self, client, target_day):
        resp = _slots(client, "nope", target_day)
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Intake config not found"

    def test_inactive_config(self, client, coach_token, target_day):
        config = _create_config(client, coach_token)
        client.patch(f"{CONFIGS_URL}/{config['id']}", json={"is_active": False}, headers=auth(coach_token))
        resp = _slots(client, config["id"], target_day)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Intake call is not active"

    def test_uses_config_duration(self, client, coach_token, utc_hourly_availability, target_day):
        config = _create_config(client, coach_token)
        resp = _slots(client, config["id"], target_day)
        assert resp.status_code == 200
        body = resp.json()
        assert body["timezone"] == "UTC"
        # 30 minute calls with a 15 minute buffer: the 09:45 start would overrun 10:00
        assert [datetime.fromisoformat(s["start"]) for s in body["slots"]] == [_at(target_day, 9)]
        assert body["slots"][0]["duration"] == 30

    def test_custom_availability_replaces_coach_schedule(
        self, client, coach_token, utc_hourly_availability, target_day
    ):
        config = _create_config(
            client,
            coach_token,
            use_custom_availability=True,
            custom_weekly_schedule=every_day("13:00", "14:00"),
        )
        resp = _slots(client, config["id"], target_day)
        assert resp.status_code == 200
        assert [datetime.fromisoformat(s["start"]) for s in resp.json()["slots"]] == [_at(target_day, 13)]

    def test_custom_schedule_ignored_when_disabled(self, client, coach_token, utc_hourly_availability, target_day):
        config = _create_config(client, coach_token, custom_weekly_schedule=every_day("13:00", "14:00"))
        resp = _slots(client, config["id"], target_day)
        assert [datetime.fromisoformat(s["start"]) for s in resp.json()["slots"]] == [_at(target_day, 9)]


class TestBooking:
    def test_book_then_slot_disappears(self, client, coach_token, utc_hourly_availability, target_day):
        config = _create_config(client, coach_token)

        resp = _book(client, config["id"], _at(target_day, 9), _at(target_day, 9, 30), timezone="Europe/Berlin")
        assert resp.status_code == 201, resp.text
        body = resp.json()
        assert body["event_id"]
        assert body["intake_call_config_id"] == config["id"]
        assert body["status"] == "confirmed"
        assert datetime.fromisoformat(body["start_datetime"]) == _at(target_day, 9)

        assert _slots(client, config["id"], target_day).json()["slots"] == []

    def test_same_slot_twice_conflicts(self, client, coach_token, utc_hourly_availability, target_day):
        config = _create_config(client, coach_token)
        assert _book(client, config["id"], _at(target_day, 9), _at(target_day, 9, 30)).status_code == 201

        resp = _book(client, config["id"], _at(target_day, 9), _at(target_day, 9, 30), name="Someone Else")
        assert resp.status_code == 409
        assert resp.json()["detail"] == "This time slot is no longer available. Please select another time."

    def test_buffer_applies_to_conflicts(self, client, coach_token, utc_hourly_availability, target_day):
        config = _create_config(client, coach_token)
        assert _book(client, config["id"], _at(target_day, 9), _at(target_day, 9, 30)).status_code == 201
        # Starts inside the 15 minute buffer after the first call
        resp = _book(client, config["id"], _at(target_day, 9, 40), _at(target_day, 10, 10))
        assert resp.status_code == 409
        resp = _book(client, config["id"], _at(target_day, 9, 45), _at(target_day, 10, 15))
        assert resp.status_code == 201

    def test_unknown_config(self, client, target_day):
        resp = _book(client, "nope", _at(target_day, 9), _at(target_day, 9, 30))
        assert resp.status_code == 404

    def test_inactive_config(self, client, coach_token, target_day):
        config = _create_config(client, coach_token, is_active=False)
        resp = _book(client, config["id"], _at(target_day, 9), _at(target_day, 9, 30))
        assert resp.status_code == 400

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": "   "},
            {"email": "not-an-email"},
        ],
    )
    def test_invalid_prospect_details(self, client, coach_token, target_day, overrides):
        config = _create_config(client, coach_token)
        resp = _book(client, config["id"], _at(target_day, 9), _at(target_day, 9, 30), **overrides)
        assert resp.status_code == 422

    def test_past_start_is_rejected(self, client, coach_token):
        config = _create_config(client, coach_token)
        start = (datetime.now(UTC) - timedelta(days=3)).replace(hour=3, minute=17, second=0, microsecond=0)
        resp = _book(client, config["id"], start, start + timedelta(minutes=30))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Cannot book a time in the past"

    @pytest.mark.parametrize("minutes", [15, 240])
    def test_length_must_match_config(self, client, coach_token, target_day, minutes):
        config = _create_config(client, coach_token)
        start = _at(target_day, 9)
        resp = _book(client, config["id"], start, start + timedelta(minutes=minutes))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "This intake call is 30 minutes long"

    def test_end_must_follow_start(self, client, coach_token, target_day):
        config = _create_config(client, coach_token)
        resp = _book(client, config["id"], _at(target_day, 10), _at(target_day, 9))
        assert resp.status_code == 422
