"""Tests for the invite service.

Covers:
- The Scrim Night walkthrough: create, invite two, RSVP, change of mind
- Invitee resolution (emails, roster ids, records) with dedup
- Re-inviting an already invited list is a conflict with no writes
- Per-recipient delivery outcome (delivered / failed) and the email-disabled path
- RSVP upsert semantics and organizer alerts
- Per-user invitation listing, pending count and invitation removal
"""
from club_events.entities import User
from tests.conftest import COACH, PLAYER, make_settings

ORGANIZER = User.from_item(COACH)
OTHER = User.from_item(PLAYER)

SCRIM = {
    "title": "Scrim Night",
    "start_date": "2025-03-01T18:00:00Z",
    "end_date": "2025-03-01T20:00:00Z",
}


async def _event(services):
    result = await services.calendar.create_event(SCRIM, ORGANIZER)
    assert result["success"], result
    return result["event"]


def _by_email(invitations, email):
    return next(inv for inv in invitations if inv.invitee_email == email)


class TestScrimNight:
    def test_walkthrough(self, service_env, transport):
        async def scenario(services):
            event = await _event(services)
            sent = await services.invites.create_invitations(
                event.id, event.created_at, ["a@x.edu", "b@x.edu"], ORGANIZER,
            )
            inv_a = _by_email(sent["invitations"], "a@x.edu")

            await services.invites.process_rsvp(inv_a.id, event.id, "accept")
            first = await services.invites.get_event_rsvp_summary(event.id)

            again = await services.invites.process_rsvp(str(inv_a.id), str(event.id), "decline")
            second = await services.invites.get_event_rsvp_summary(event.id)
            rows = await services.storage.scan("rsvps", event_id=str(event.id))
            return event, sent, first, again, second, rows

        event, sent, first, again, second, rows = service_env(scenario)

        assert isinstance(event.id, int)
        assert sent["invitations_sent"] == 2
        assert sent["emails_sent"] == 2
        assert {inv.status for inv in sent["invitations"]} == {"delivered"}
        assert sorted(transport.recipients("Calendar Invite")) == ["a@x.edu", "b@x.edu"]

        summary = first["summary"]
        assert (summary["accept"], summary["maybe"], summary["decline"]) == (1, 0, 0)
        assert summary["no_response"] == 1
        assert summary["total_invited"] == 2
        assert summary["response_rate"] == 50

        assert again["updated"] is True
        assert again["message"] == "RSVP updated successfully"
        assert (second["summary"]["accept"], second["summary"]["decline"]) == (0, 1)
        assert len(rows) == 1


class TestCreateInvitations:
    def test_mixed_invitee_list(self, service_env):
        async def scenario(services):
            await services.storage.put("students", {"id": "s1", "name": "Player One", "username": "p1", "email": "p1@x.edu"})
            await services.storage.put("users", PLAYER)
            event = await _event(services)
            return await services.invites.create_invitations(
                event.id, event.created_at,
                ["a@x.edu", "s1", {"email": "c@x.edu", "name": "Cee"}, "a@x.edu", "ghost", "bad@"],
                ORGANIZER,
            )

        result = service_env(scenario)
        names = {inv.invitee_email: inv.invitee_name for inv in result["invitations"]}
        assert names == {"a@x.edu": "player_a", "p1@x.edu": "Player One", "c@x.edu": "Cee"}

    def test_partial_reinvite_skips_existing(self, service_env):
        async def scenario(services):
            event = await _event(services)
            await services.invites.create_invitations(event.id, event.created_at, ["a@x.edu"], ORGANIZER)
            result = await services.invites.create_invitations(
                event.id, event.created_at, ["a@x.edu", "b@x.edu"], ORGANIZER,
            )
            return result, await services.storage.scan("invitations", event_id=str(event.id))

        result, stored = service_env(scenario)
        assert result["invitations_sent"] == 1
        assert result["already_invited"] == 1
        assert sorted(item["invitee_email"] for item in stored) == ["a@x.edu", "b@x.edu"]

    def test_full_reinvite_is_conflict(self, service_env):
        async def scenario(services):
            event = await _event(services)
            await services.invites.create_invitations(event.id, event.created_at, ["a@x.edu", "b@x.edu"], ORGANIZER)
            before = await services.storage.scan("invitations")
            result = await services.invites.create_invitations(
                event.id, event.created_at, ["b@x.edu", "a@x.edu"], ORGANIZER,
            )
            return result, before, await services.storage.scan("invitations")

        result, before, after = service_env(scenario)
        assert result["error"] == "All specified users have already been invited"
        assert result["error_type"] == "conflict"
        assert after == before

    def test_no_valid_invitees(self, service_env):
        async def scenario(services):
            event = await _event(services)
            return await services.invites.create_invitations(event.id, event.created_at, ["bad@", "ghost"], ORGANIZER)

        result = service_env(scenario)
        assert result["error"] == "No valid invitees provided"
        assert result["error_type"] == "validation"

    def test_only_organizer_may_invite(self, service_env):
        async def scenario(services):
            event = await _event(services)
            return await services.invites.create_invitations(event.id, event.created_at, ["b@x.edu"], OTHER)

        assert service_env(scenario)["error_type"] == "forbidden"

    def test_missing_event(self, service_env):
        async def scenario(services):
            return await services.invites.create_invitations(424242, None, ["b@x.edu"], ORGANIZER)

        assert service_env(scenario)["error"] == "Event not found"


class TestDelivery:
    def test_refused_recipient_marked_failed(self, service_env, transport):
        transport.fail_for.add("b@x.edu")

        async def scenario(services):
            event = await _event(services)
            result = await services.invites.create_invitations(
                event.id, event.created_at, ["a@x.edu", "b@x.edu"], ORGANIZER,
            )
            return result, await services.storage.scan("invitations", invitee_email="b@x.edu")

        result, stored = service_env(scenario)
        assert result["success"]
        assert (result["emails_sent"], result["emails_failed"]) == (1, 1)
        assert _by_email(result["invitations"], "a@x.edu").status == "delivered"
        failed = _by_email(result["invitations"], "b@x.edu")
        assert failed.status == "failed"
        assert failed.error_message
        assert stored[0]["status"] == "failed"
        assert stored[0]["failed_at"]

    def test_opted_out_recipient_marked_failed(self, service_env, transport):
        async def scenario(services):
            await services.storage.put("users", {**PLAYER, "calendar_invites": False})
            event = await _event(services)
            return await services.invites.create_invitations(event.id, event.created_at, ["a@x.edu"], ORGANIZER)

        result = service_env(scenario)
        invitation = result["invitations"][0]
        assert invitation.status == "failed"
        assert invitation.error_message == "User has disabled calendar invites"
        assert transport.sent == []

    def test_email_disabled_leaves_invitations_sent(self, tmp_path, transport):
        import asyncio
        from club_events.container import build_services

        settings = make_settings(tmp_path, ENABLE_EMAIL=False)

        async def scenario():
            services = await build_services(settings, transport=transport)
            try:
                event = await _event(services)
                return await services.invites.create_invitations(
                    event.id, event.created_at, ["a@x.edu"], ORGANIZER,
                )
            finally:
                await services.close()

        result = asyncio.run(scenario())
        assert result["success"]
        assert result["invitations_sent"] == 1
        assert result["emails_sent"] == 0
        assert result["invitations"][0].status == "sent"
        assert transport.sent == []


class TestRSVP:
    def test_each_response_round_trips(self, service_env):
        async def scenario(services):
            event = await _event(services)
            sent = await services.invites.create_invitations(event.id, event.created_at, ["a@x.edu"], ORGANIZER)
            invitation = sent["invitations"][0]
            seen = []
            for response in ("accept", "maybe", "decline"):
                await services.invites.process_rsvp(invitation.id, event.id, response, notes="gg")
                stored = await services.storage.get(
                    "rsvps", {"invitation_id": str(invitation.id), "event_id": str(event.id)},
                )
                seen.append((stored["response"], stored["notes"], stored["responder_email"]))
            return seen

        assert service_env(scenario) == [
            ("accept", "gg", "a@x.edu"),
            ("maybe", "gg", "a@x.edu"),
            ("decline", "gg", "a@x.edu"),
        ]

    def test_first_response_is_recorded(self, service_env):
        async def scenario(services):
            event = await _event(services)
            sent = await services.invites.create_invitations(event.id, event.created_at, ["a@x.edu"], ORGANIZER)
            return await services.invites.process_rsvp(
                sent["invitations"][0].id, event.id, "maybe", responder={"name": "Ace"},
            )

        result = service_env(scenario)
        assert result["updated"] is False
        assert result["message"] == "RSVP recorded successfully"
        assert result["rsvp"].responder_name == "Ace"

    def test_invalid_response(self, service_env):
        async def scenario(services):
            return await services.invites.process_rsvp("1", "2", "yes")

        result = service_env(scenario)
        assert result["error"] == "Invalid response. Must be accept, maybe, or decline"
        assert result["error_type"] == "validation"

    def test_unknown_invitation(self, service_env):
        async def scenario(services):
            event = await _event(services)
            return await services.invites.process_rsvp("999", event.id, "accept")

        assert service_env(scenario)["error_type"] == "not_found"

    def test_organizer_alert_when_opted_in(self, service_env, transport):
        async def scenario(services):
            await services.storage.put("users", {**COACH, "rsvp_notifications": True})
            event = await _event(services)
            sent = await services.invites.create_invitations(event.id, event.created_at, ["a@x.edu"], ORGANIZER)
            await services.invites.process_rsvp(sent["invitations"][0].id, event.id, "accept")
            await services.invites.process_rsvp(sent["invitations"][0].id, event.id, "decline")
            await services.notifier.drain()

        service_env(scenario)
        subjects = [m["Subject"] for m in transport.sent if m["To"] == "coach@x.edu"]
        assert sorted(subjects) == ["RSVP Received: Scrim Night", "RSVP Updated: Scrim Night"]

    def test_no_alert_by_default(self, service_env, transport):
        async def scenario(services):
            await services.storage.put("users", COACH)
            event = await _event(services)
            sent = await services.invites.create_invitations(event.id, event.created_at, ["a@x.edu"], ORGANIZER)
            await services.invites.process_rsvp(sent["invitations"][0].id, event.id, "accept")
            await services.notifier.drain()

        service_env(scenario)
        assert transport.recipients("RSVP") == []


class TestListingAndRemoval:
    def test_user_invitations_and_pending_count(self, service_env):
        async def scenario(services):
            first = await _event(services)
            second = await _event(services)
            one = await services.invites.create_invitations(first.id, first.created_at, ["a@x.edu"], ORGANIZER)
            await services.invites.create_invitations(second.id, second.created_at, ["a@x.edu"], ORGANIZER)
            await services.invites.process_rsvp(one["invitations"][0].id, first.id, "accept")
            return (
                await services.invites.get_user_invitations("a@x.edu"),
                await services.invites.get_user_invitations("a@x.edu", include_responded=False),
                await services.invites.get_pending_invitations_count("a@x.edu"),
                second,
            )

        everything, pending, count, second = service_env(scenario)
        assert len(everything["invitations"]) == 2
        answered = [entry for entry in everything["invitations"] if entry["rsvp"] is not None]
        assert answered[0]["rsvp"].response == "accept"
        assert [entry["invitation"].event_id for entry in pending["invitations"]] == [str(second.id)]
        assert count["count"] == 1

    def test_remove_invitation_drops_rsvp(self, service_env):
        async def scenario(services):
            event = await _event(services)
            sent = await services.invites.create_invitations(
                event.id, event.created_at, ["a@x.edu", "b@x.edu"], ORGANIZER,
            )
            inv_a = _by_email(sent["invitations"], "a@x.edu")
            await services.invites.process_rsvp(inv_a.id, event.id, "accept")

            forbidden = await services.invites.remove_invitation(inv_a.id, event.id, OTHER)
            removed = await services.invites.remove_invitation(str(inv_a.id), str(event.id), ORGANIZER)
            missing = await services.invites.remove_invitation(inv_a.id, event.id, ORGANIZER)
            summary = await services.invites.get_event_rsvp_summary(event.id)
            return forbidden, removed, missing, summary

        forbidden, removed, missing, summary = service_env(scenario)
        assert forbidden["error_type"] == "forbidden"
        assert removed["message"] == "Invitation removed successfully"
        assert missing["error_type"] == "not_found"
        assert summary["summary"]["total_invited"] == 1
        assert summary["summary"]["accept"] == 0
