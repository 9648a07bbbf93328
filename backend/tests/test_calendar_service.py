"""Tests for the calendar service.

Covers:
- Create validates before writing, and sanitises what it stores
- Details round-trip and summary for an event without invitations
- Organizer/admin authorization on update and delete
- Change detection and update notices to invitees
- Cascade delete of invitations and RSVPs
- Listing, upcoming and the calendar-feed fallback flag
"""
from club_events.entities import User
from tests.conftest import COACH, PLAYER

ORGANIZER = User.from_item(COACH)
OTHER = User.from_item(PLAYER)
ADMIN = User(id="99", email="admin@x.edu", auth="admin")

SCRIM = {
    "title": "Scrim Night",
    "start_date": "2099-03-01T18:00:00Z",
    "end_date": "2099-03-01T20:00:00Z",
    "location": "Lab 101",
}


async def _create(services, organizer=ORGANIZER, **fields):
    result = await services.calendar.create_event({**SCRIM, **fields}, organizer)
    assert result["success"], result
    return result["event"]


class TestCreate:
    def test_create_then_details(self, service_env):
        async def scenario(services):
            event = await _create(services, description="Bring <headsets>!")
            return event, await services.calendar.get_event_details(event.id, event.created_at)

        event, details = service_env(scenario)
        assert isinstance(event.id, int)
        assert details["success"]
        assert details["event"].description == "Bring headsets"
        assert details["event"].organizer_email == "coach@x.edu"
        assert details["total_invited"] == 0
        assert details["rsvp_summary"]["total"] == 0

    def test_details_without_created_at(self, service_env):
        async def scenario(services):
            event = await _create(services)
            return await services.calendar.get_event_details(str(event.id))

        assert service_env(scenario)["event"].title == "Scrim Night"

    def test_invalid_event_not_written(self, service_env):
        async def scenario(services):
            result = await services.calendar.create_event(
                {**SCRIM, "title": "", "end_date": "2099-03-01T17:00:00Z"},
                User(id="1", email="not-an-email"),
            )
            return result, await services.storage.scan("events")

        result, stored = service_env(scenario)
        assert result["success"] is False
        assert result["error_type"] == "validation"
        assert result["errors"] == [
            "Title is required",
            "End date must be after start date",
            "Valid organizer email is required",
        ]
        assert stored == []

    def test_unknown_event(self, service_env):
        async def scenario(services):
            return await services.calendar.get_event_details("123")

        result = service_env(scenario)
        assert result["error"] == "Event not found"
        assert result["error_type"] == "not_found"


class TestUpdate:
    def test_non_organizer_forbidden(self, service_env):
        async def scenario(services):
            event = await _create(services)
            return await services.calendar.update_event(event.id, event.created_at, {"title": "Mine now"}, OTHER)

        result = service_env(scenario)
        assert result["error_type"] == "forbidden"

    def test_admin_may_update_identity_untouched(self, service_env):
        async def scenario(services):
            event = await _create(services)
            result = await services.calendar.update_event(
                event.id, event.created_at,
                {"location": "Arena", "organizer_id": "99", "id": 5},
                ADMIN,
            )
            return event, result

        event, result = service_env(scenario)
        assert result["success"]
        assert result["event"].id == event.id
        assert result["event"].organizer_id == "1"
        assert result["changes"] == ['Location changed from "Lab 101" to "Arena"']

    def test_invalid_update_rejected(self, service_env):
        async def scenario(services):
            event = await _create(services)
            result = await services.calendar.update_event(event.id, None, {"end_date": "yesterday"}, ORGANIZER)
            return result, await services.calendar.find_event(event.id)

        result, stored = service_env(scenario)
        assert result["errors"] == ["Invalid end date format. Use ISO 8601 format"]
        assert stored.end_date == SCRIM["end_date"]

    def test_update_notice_sent_to_invitees(self, service_env, transport):
        async def scenario(services):
            await services.storage.put("users", {**PLAYER, "event_reminders": True})
            event = await _create(services)
            await services.invites.create_invitations(event.id, event.created_at, ["a@x.edu", "b@x.edu"], ORGANIZER)
            result = await services.calendar.update_event(
                event.id, event.created_at, {"start_date": "2099-03-01T19:00:00Z"}, ORGANIZER,
            )
            await services.notifier.drain()
            return result

        result = service_env(scenario)
        assert result["changes"] == [
            "Start time changed from Sun, Mar 01 2099 06:00 PM UTC to Sun, Mar 01 2099 07:00 PM UTC"
        ]
        # b@x.edu is not registered and so has no opt-in to update emails
        assert transport.recipients("Event Updated") == ["a@x.edu"]

    def test_no_changes_no_notice(self, service_env, transport):
        async def scenario(services):
            event = await _create(services)
            await services.invites.create_invitations(event.id, event.created_at, ["a@x.edu"], ORGANIZER)
            result = await services.calendar.update_event(event.id, event.created_at, {"title": "Scrim Night"}, ORGANIZER)
            await services.notifier.drain()
            return result

        assert service_env(scenario)["changes"] == []
        assert transport.recipients("Event Updated") == []


class TestDelete:
    def test_cascade(self, service_env):
        async def scenario(services):
            event = await _create(services)
            sent = await services.invites.create_invitations(
                event.id, event.created_at, ["a@x.edu", "b@x.edu"], ORGANIZER,
            )
            first = sent["invitations"][0]
            await services.invites.process_rsvp(first.id, event.id, "accept")
            result = await services.calendar.delete_event(event.id, event.created_at, ORGANIZER)
            remaining = (
                await services.storage.scan("events"),
                await services.storage.scan("invitations", event_id=str(event.id)),
                await services.storage.scan("rsvps", event_id=str(event.id)),
            )
            return result, remaining

        result, (events, invitations, rsvps) = service_env(scenario)
        assert result["success"]
        assert result["deleted_invitations"] == 2
        assert result["deleted_rsvps"] == 1
        assert result["message"] == 'Event "Scrim Night" and all related data deleted successfully'
        assert events == invitations == rsvps == []

    def test_delete_forbidden_for_others(self, service_env):
        async def scenario(services):
            event = await _create(services)
            result = await services.calendar.delete_event(event.id, event.created_at, OTHER)
            return result, await services.storage.scan("events")

        result, events = service_env(scenario)
        assert result["error_type"] == "forbidden"
        assert len(events) == 1


class TestListing:
    def test_private_events_hidden(self, service_env):
        async def scenario(services):
            await _create(services, title="Open Scrim")
            await _create(services, title="Staff Meeting", is_public=False)
            return (
                await services.calendar.get_all_events(),
                await services.calendar.get_all_events(include_private=True),
            )

        public, everything = service_env(scenario)
        assert [e.title for e in public["events"]] == ["Open Scrim"]
        assert len(everything["events"]) == 2

    def test_sorted_by_start_and_upcoming(self, service_env):
        async def scenario(services):
            await _create(services, title="Later", start_date="2099-05-01T18:00:00Z", end_date="2099-05-01T19:00:00Z")
            await _create(services, title="Past", start_date="2020-01-01T18:00:00Z", end_date="2020-01-01T19:00:00Z")
            await _create(services, title="Sooner")
            return (
                await services.calendar.get_all_events(),
                await services.calendar.get_upcoming_events(limit=1),
                await services.calendar.get_events_by_user("1"),
            )

        everything, upcoming, mine = service_env(scenario)
        assert [e.title for e in everything["events"]] == ["Past", "Sooner", "Later"]
        assert [e.title for e in upcoming["events"]] == ["Sooner"]
        assert len(mine["events"]) == 3

    def test_calendar_feed_fallback_flag(self, service_env):
        async def scenario(services):
            empty = await services.calendar.get_events_for_calendar()
            await _create(services)
            full = await services.calendar.get_events_for_calendar()
            return empty, full

        empty, full = service_env(scenario)
        assert empty["should_fallback"] is True
        assert full["should_fallback"] is False
        assert full["events"][0]["title"] == "Scrim Night"
