"""Tests for invitee management, invitation stats, CSV export and the invitee inbox."""
from datetime import timedelta

from tests.conftest import NOW, as_user, create_test_event, create_test_user


def invite(client, event, organizer, users):
    return client.post(
        f"/api/events/{event['id']}/invite",
        json={"invited_user_ids": [u["id"] for u in users]},
        headers=as_user(organizer),
    )


def rsvp(client, event, user, status):
    resp = client.post(f"/api/events/{event['id']}/rsvp", json={"status": status}, headers=as_user(user))
    assert resp.status_code == 200, resp.text


class TestAddInvitees:

    def test_adds_new_and_skips_existing(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        newcomer = create_test_user(client, "Femi", "Adewale")
        event = create_test_event(client, org, is_public=False, invitees=[guest])

        resp = invite(client, event, org, [guest, newcomer, newcomer])
        assert resp.status_code == 200
        assert resp.json()["invited"] == 1

        attendees = client.get(f"/api/events/{event['id']}/attendees", headers=as_user(org)).json()
        assert len(attendees) == 3

    def test_all_already_invited(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        event = create_test_event(client, org, is_public=False, invitees=[guest])

        resp = invite(client, event, org, [guest, org])
        assert resp.status_code == 200
        assert resp.json() == {"invited": 0, "message": "All selected users are already invited"}

    def test_non_organizer_forbidden(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        newcomer = create_test_user(client, "Femi", "Adewale")
        event = create_test_event(client, org, is_public=False, invitees=[guest])
        resp = invite(client, event, guest, [newcomer])
        assert resp.status_code == 403

    def test_public_event_invalid_state(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        event = create_test_event(client, org)
        resp = invite(client, event, org, [guest])
        assert resp.status_code == 400
        assert resp.json()["detail"]["kind"] == "InvalidState"

    def test_empty_list_rejected(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        event = create_test_event(client, org, is_public=False, invitees=[guest])
        resp = invite(client, event, org, [])
        assert resp.status_code == 400
        assert resp.json()["detail"]["kind"] == "InvalidArgument"

    def test_unknown_user_adds_nobody(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        newcomer = create_test_user(client, "Femi", "Adewale")
        event = create_test_event(client, org, is_public=False, invitees=[guest])

        resp = invite(client, event, org, [newcomer, {"id": "ghost"}])
        assert resp.status_code == 404
        attendees = client.get(f"/api/events/{event['id']}/attendees", headers=as_user(org)).json()
        assert len(attendees) == 2

    def test_new_invitee_can_see_event(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        newcomer = create_test_user(client, "Femi", "Adewale")
        event = create_test_event(client, org, is_public=False, invitees=[guest])
        assert client.get(f"/api/events/{event['id']}", headers=as_user(newcomer)).status_code == 404

        invite(client, event, org, [newcomer])
        assert client.get(f"/api/events/{event['id']}", headers=as_user(newcomer)).status_code == 200


class TestInvitationStats:

    def test_counts_and_buckets(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        going = create_test_user(client, "Tunde", "Ola")
        maybe = create_test_user(client, "Femi", "Adewale")
        silent = create_test_user(client, "Kemi", "Bello")
        event = create_test_event(client, org, is_public=False, invitees=[going, maybe, silent])
        rsvp(client, event, going, "GOING")
        rsvp(client, event, maybe, "MAYBE")

        resp = client.get(f"/api/events/{event['id']}/invitation-stats", headers=as_user(org))
        assert resp.status_code == 200
        stats = resp.json()
        assert stats["total"] == 4
        assert stats["invited"] == 1
        assert stats["going"] == 2
        assert stats["maybe"] == 1
        assert stats["declined"] == 0
        assert stats["total"] == stats["invited"] + stats["going"] + stats["maybe"] + stats["declined"]
        assert stats["response_rate"] == 75
        assert [u["id"] for u in stats["by_status"]["invited"]] == [silent["id"]]
        organizer_entry = next(u for u in stats["by_status"]["going"] if u["id"] == org["id"])
        assert organizer_entry["role"] == "ORGANIZER"

    def test_response_rate_rounds_half_up(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guests = [create_test_user(client, f"Guest{i}", "Member") for i in range(7)]
        event = create_test_event(client, org, is_public=False, invitees=guests)

        stats = client.get(f"/api/events/{event['id']}/invitation-stats", headers=as_user(org)).json()
        # 1 of 8 responded: 12.5% rounds to 13
        assert stats["response_rate"] == 13

    def test_non_organizer_forbidden(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        event = create_test_event(client, org, is_public=False, invitees=[guest])
        resp = client.get(f"/api/events/{event['id']}/invitation-stats", headers=as_user(guest))
        assert resp.status_code == 403


class TestAttendeeExport:

    def test_csv_rows_ordered_by_status(self, client):
        org = create_test_user(client, "Ngozi", "Ike", company="Kora Labs", position="CEO", city="Lagos")
        declined = create_test_user(client, "Tunde", "Ola")
        maybe = create_test_user(client, "Femi", "Adewale", company="Acme, Inc.")
        silent = create_test_user(client, "Kemi", "Bello")
        event = create_test_event(
            client, org, title="Q3 Board: Review", is_public=False, invitees=[declined, maybe, silent]
        )
        rsvp(client, event, declined, "DECLINED")
        rsvp(client, event, maybe, "MAYBE")

        resp = client.get(f"/api/events/{event['id']}/attendees/export", headers=as_user(org))
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.headers["content-disposition"] == 'attachment; filename="Q3_Board_Review_attendees.csv"'

        lines = resp.text.split("\n")
        assert lines[0] == "Name,Email,Company,Position,Location,Status,Role"
        assert lines[1] == "Kemi Bello,kemi.bello@cnsnetwork.org,,,,INVITED,ATTENDEE"
        assert lines[2] == "Ngozi Ike,ngozi.ike@cnsnetwork.org,Kora Labs,CEO,Lagos,GOING,ORGANIZER"
        assert lines[3] == 'Femi Adewale,femi.adewale@cnsnetwork.org,"Acme, Inc.",,,MAYBE,ATTENDEE'
        assert lines[4] == "Tunde Ola,tunde.ola@cnsnetwork.org,,,,DECLINED,ATTENDEE"
        assert lines[5:] == [""]

    def test_non_organizer_forbidden(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        event = create_test_event(client, org, is_public=False, invitees=[guest])
        resp = client.get(f"/api/events/{event['id']}/attendees/export", headers=as_user(guest))
        assert resp.status_code == 403


class TestInvitationInbox:

    def test_pending_invitations_paginated(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        events = [
            create_test_event(client, org, title=f"Session {i}", is_public=False, invitees=[guest], days_ahead=i + 1)
            for i in range(3)
        ]

        resp = client.get("/api/events/invitations", params={"limit": 2}, headers=as_user(guest))
        assert resp.status_code == 200
        data = resp.json()
        assert data["pagination"] == {"total": 3, "limit": 2, "offset": 0, "has_more": True}
        # Newest invitation first
        assert [e["id"] for e in data["invitations"]] == [events[2]["id"], events[1]["id"]]
        assert data["invitations"][0]["user_rsvp_status"] == "INVITED"

        page2 = client.get(
            "/api/events/invitations", params={"limit": 2, "offset": 2}, headers=as_user(guest)
        ).json()
        assert [e["id"] for e in page2["invitations"]] == [events[0]["id"]]
        assert page2["pagination"]["has_more"] is False

    def test_suggested_respond_by_is_day_before(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        create_test_event(client, org, is_public=False, invitees=[guest], days_ahead=4)

        item = client.get("/api/events/invitations", headers=as_user(guest)).json()["invitations"][0]
        expected = (NOW + timedelta(days=3)).replace(tzinfo=None)
        assert item["suggested_respond_by"].startswith(expected.isoformat())

    def test_answered_invitations_drop_out(self, client):
        org = create_test_user(client, "Ngozi", "Ike")
        guest = create_test_user(client, "Tunde", "Ola")
        first = create_test_event(client, org, is_public=False, invitees=[guest])
        create_test_event(client, org, is_public=False, invitees=[guest], days_ahead=9)

        assert client.get("/api/events/invitations/count", headers=as_user(guest)).json() == {"count": 2}
        rsvp(client, first, guest, "GOING")
        assert client.get("/api/events/invitations/count", headers=as_user(guest)).json() == {"count": 1}
        data = client.get("/api/events/invitations", headers=as_user(guest)).json()
        assert data["pagination"]["total"] == 1
