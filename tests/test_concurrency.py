"""Service-level tests for racing writers and the pure helpers behind them."""
from datetime import timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from cns_network.clock import FixedClock
from cns_network.errors import ConflictError, InvalidStateError
from cns_network.models.attendee import AttendeeStatus, EventAttendee
from cns_network.models.connection import Connection, ConnectionStatus, ordered_pair
from cns_network.models.user import User
from cns_network.schemas.event import EventCreate
from cns_network.services import connection_service, event_service, invitation_service, rsvp_service
from tests.conftest import NOW


def add_user(db, first_name):
    user = User(email=f"{first_name.lower()}@cnsnetwork.org", first_name=first_name, last_name="Member")
    db.add(user)
    db.commit()
    return user


def private_event(db, organizer, guests):
    data = EventCreate(
        title="Strategy Session",
        type="MEETING",
        date=NOW + timedelta(days=2),
        is_public=False,
        invited_user_ids=[g.id for g in guests],
    )
    return event_service.create_event(db, data, organizer.id, FixedClock(NOW))


class TestConnectionRace:

    def test_lost_insert_race_is_conflict(self, db, monkeypatch):
        alice = add_user(db, "Alice")
        bob = add_user(db, "Bob")
        winner = connection_service.send_request(db, alice.id, bob.id)

        real_find_pair = connection_service._find_pair
        calls = []

        def stale_find_pair(session, user_a, user_b):
            # The first lookup misses the row the other request committed
            calls.append((user_a, user_b))
            if len(calls) == 1:
                return None
            return real_find_pair(session, user_a, user_b)

        monkeypatch.setattr(connection_service, "_find_pair", stale_find_pair)
        with pytest.raises(ConflictError) as exc:
            connection_service.send_request(db, bob.id, alice.id)

        assert exc.value.detail["connection_id"] == winner.id
        assert db.query(Connection).count() == 1

    def test_integrity_error_without_winner_propagates(self, db, monkeypatch):
        alice = add_user(db, "Alice")
        bob = add_user(db, "Bob")
        connection_service.send_request(db, alice.id, bob.id)
        monkeypatch.setattr(connection_service, "_find_pair", lambda session, user_a, user_b: None)

        with pytest.raises(IntegrityError):
            connection_service.send_request(db, bob.id, alice.id)
        assert db.query(Connection).count() == 1

    def test_response_after_concurrent_accept(self, db):
        alice = add_user(db, "Alice")
        bob = add_user(db, "Bob")
        conn = connection_service.send_request(db, alice.id, bob.id)
        connection_service.accept_request(db, conn.id, bob.id)

        with pytest.raises(InvalidStateError):
            connection_service.decline_request(db, conn.id, bob.id)
        assert db.query(Connection).one().status == ConnectionStatus.accepted

    def test_ordered_pair_is_symmetric(self):
        assert ordered_pair("b", "a") == ordered_pair("a", "b") == ("a", "b")


class TestRSVPRace:

    def test_stale_status_loses_compare_and_swap(self, db):
        org = add_user(db, "Ngozi")
        guest = add_user(db, "Tunde")
        event = private_event(db, org, [guest])

        attendee = (
            db.query(EventAttendee)
            .filter(EventAttendee.event_id == event.id, EventAttendee.user_id == guest.id)
            .one()
        )
        assert attendee.status == AttendeeStatus.invited

        # Another request answers first; this session still holds INVITED
        db.execute(
            update(EventAttendee)
            .where(EventAttendee.id == attendee.id)
            .values(status=AttendeeStatus.declined)
            .execution_options(synchronize_session=False)
        )

        with pytest.raises(ConflictError):
            rsvp_service._transition(db, attendee, AttendeeStatus.going)

    def test_transition_table(self):
        assert set(rsvp_service.ALLOWED_TRANSITIONS) == set(AttendeeStatus)
        assert rsvp_service.allowed_next(AttendeeStatus.invited) == ["DECLINED", "GOING", "MAYBE"]
        assert rsvp_service.allowed_next(AttendeeStatus.maybe) == ["DECLINED", "GOING"]
        assert rsvp_service.allowed_next(AttendeeStatus.declined) == []
        with pytest.raises(InvalidStateError):
            rsvp_service.check_transition(AttendeeStatus.going, AttendeeStatus.invited)


class TestInvitationHelpers:

    @pytest.mark.parametrize("title, expected", [
        ("Board Dinner", "Board_Dinner_attendees.csv"),
        ("Q3: Plan / Review", "Q3_Plan_Review_attendees.csv"),
        ("Café Night", "Caf_Night_attendees.csv"),
    ])
    def test_export_filename(self, title, expected):
        assert invitation_service.export_filename(title) == expected

    @pytest.mark.parametrize("total, invited, rate", [
        (0, 0, 0),
        (4, 4, 0),
        (4, 0, 100),
        (3, 1, 67),
        (8, 7, 13),
    ])
    def test_response_rate(self, total, invited, rate):
        assert invitation_service._response_rate(total, invited) == rate

    def test_create_event_is_single_commit(self, db):
        org = add_user(db, "Ngozi")
        guests = [add_user(db, name) for name in ("Tunde", "Femi")]
        event = private_event(db, org, guests)

        rows = db.query(EventAttendee).filter(EventAttendee.event_id == event.id).all()
        statuses = sorted(row.status.value for row in rows)
        assert statuses == ["GOING", "INVITED", "INVITED"]
