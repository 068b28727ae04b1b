"""Tests for TurnDispatcher."""

from unittest.mock import Mock

import pytest

from pvpal.dialogue import parse_selection
from pvpal.intents import IntentClassifier
from pvpal.models import (
    CandidatePriority,
    CapabilityResult,
    DialogueState,
    IntentCandidate,
    IntentType,
    Session,
)
from pvpal.prompts import APOLOGY_REPLY, DONE_REPLY


class StubCapability:
    """Capability with canned results."""

    def __init__(
        self, intent, result=None, error=None, reply="stub reply", render_error=None
    ):
        self.intent = intent
        self.result = result or CapabilityResult(success=True)
        self.error = error
        self.render_error = render_error
        self.reply = reply
        self.requests = []

    async def process(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.result

    async def render_response(self, result):
        if self.render_error:
            raise self.render_error
        return self.reply


def fixed_classifier(intent, confidence):
    classifier = Mock()
    classifier.classify = Mock(
        return_value=IntentCandidate(
            type=intent, confidence=confidence, priority=CandidatePriority.BANTER
        )
    )
    return classifier


async def add_session(storage, time, game_mode="3v3", date="tomorrow"):
    return await storage.create_session(
        Session(
            session_id="",
            community_id="guild1",
            game_mode=game_mode,
            date=date,
            time=time,
            host_id="host1",
        )
    )


class TestParseSelection:
    """Tests for parse_selection()."""

    @pytest.mark.parametrize(
        "content,expected",
        [("2", 2), (" 10 ", 10), ("2 please", None), ("two", None), ("", None)],
    )
    def test_parse(self, content, expected):
        """Test that only bare integers count as selections."""
        assert parse_selection(content) == expected


class TestDispatcherEventCreation:
    """Event creation flows through the dispatcher."""

    @pytest.mark.asyncio
    async def test_one_shot_creation(self, dispatcher_factory, make_message, storage):
        """Test that a complete request creates the session and leaves no state."""
        dispatcher, conversations, history, retries = dispatcher_factory()
        message = make_message("can we do 3s tomorrow at 8pm")

        reply = await dispatcher.handle(message)

        assert reply.startswith("Done! 3v3 is on the calendar for tomorrow at 20:00")
        assert conversations.get(message.key) is None
        assert retries.check(message.key) is None
        sessions = await storage.find_sessions("guild1")
        assert len(sessions) == 1
        assert sessions[0].host_id == "u1"
        assert [e.role for e in history.get(message.key)] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_multi_turn_creation(
        self, dispatcher_factory, make_message, storage, clock
    ):
        """Test that a missing time is asked for and filled by a follow-up."""
        dispatcher, conversations, _, _ = dispatcher_factory()
        first = make_message("schedule RBGs Friday")

        reply = await dispatcher.handle(first)

        assert "time" in reply
        context = conversations.get(first.key)
        assert context.pending_intent == IntentType.EVENT_CREATION
        assert context.state == DialogueState.CONTINUATION
        assert context.accumulated_text == "schedule RBGs Friday"
        assert context.data == {"game_mode": "RBGs", "date": "friday"}

        clock.advance(minutes=1)
        reply = await dispatcher.handle(make_message("8pm", addressed=False))

        assert reply.startswith("Done! RBGs is on the calendar for friday at 20:00")
        assert conversations.get(first.key) is None
        sessions = await storage.find_sessions("guild1", game_mode="RBGs")
        assert len(sessions) == 1

    @pytest.mark.asyncio
    async def test_follow_up_corrects_earlier_value(
        self, dispatcher_factory, make_message, storage, clock
    ):
        """Test that a value restated in a follow-up replaces the earlier one."""
        dispatcher, conversations, _, _ = dispatcher_factory()
        first = make_message("schedule friday at 8pm")

        await dispatcher.handle(first)

        context = conversations.get(first.key)
        assert context.data == {"date": "friday", "time": "20:00"}

        clock.advance(minutes=1)
        reply = await dispatcher.handle(
            make_message("3s, actually make it 9pm", addressed=False)
        )

        assert reply.startswith("Done! 3v3 is on the calendar for friday at 21:00")
        sessions = await storage.find_sessions("guild1")
        assert [s.time for s in sessions] == ["21:00"]

    @pytest.mark.asyncio
    async def test_failure_marks_retry(self, dispatcher_factory, make_message, clock):
        """Test that a failed creation lets a later 'schedule' message retry it."""
        classifier = Mock(wraps=IntentClassifier())
        dispatcher, conversations, _, retries = dispatcher_factory(classifier=classifier)
        message = make_message("can we do 3s tomorrow at 8pm", community_id=None)

        reply = await dispatcher.handle(message)

        assert reply.startswith("Sorry, I couldn't create that event")
        assert retries.check(message.key) is not None
        assert conversations.get(message.key) is None
        calls = classifier.classify.call_count

        clock.advance(minutes=2)
        reply = await dispatcher.handle(make_message("let's schedule it", addressed=False))

        assert reply is not None
        assert classifier.classify.call_count == calls
        context = conversations.get(message.key)
        assert context.pending_intent == IntentType.EVENT_CREATION

    @pytest.mark.asyncio
    async def test_retry_window_expires(self, dispatcher_factory, make_message, clock):
        """Test that an old failure no longer makes the bot answer."""
        dispatcher, _, _, _ = dispatcher_factory()
        await dispatcher.handle(
            make_message("can we do 3s tomorrow at 8pm", community_id=None)
        )

        clock.advance(minutes=6)
        reply = await dispatcher.handle(make_message("let's schedule it", addressed=False))

        assert reply is None


class TestDispatcherDisambiguation:
    """Participation disambiguation."""

    @pytest.mark.asyncio
    async def test_numbered_selection(self, dispatcher_factory, make_message, storage):
        """Test that a bare number picks a candidate without reclassifying."""
        early = await add_session(storage, "18:00")
        late = await add_session(storage, "21:00")
        classifier = Mock(wraps=IntentClassifier())
        dispatcher, conversations, _, _ = dispatcher_factory(classifier=classifier)
        message = make_message("I'll join tomorrow's 3s")

        reply = await dispatcher.handle(message)

        assert "Reply with the number" in reply
        context = conversations.get(message.key)
        assert context.state == DialogueState.DISAMBIGUATION
        assert [c["session_id"] for c in context.data["candidates"]] == [
            early.session_id,
            late.session_id,
        ]
        calls = classifier.classify.call_count

        reply = await dispatcher.handle(make_message("2"))

        assert reply.startswith("You're in for 3v3 on tomorrow at 21:00")
        assert classifier.classify.call_count == calls
        assert conversations.get(message.key) is None
        joined = await storage.list_participants(late.session_id)
        assert {p.user_id for p in joined} == {"host1", "u1"}
        assert [p.user_id for p in await storage.list_participants(early.session_id)] == [
            "host1"
        ]

    @pytest.mark.asyncio
    async def test_out_of_range_selection(self, dispatcher_factory, make_message, storage):
        """Test that an invalid number fails and clears the flow."""
        await add_session(storage, "18:00")
        await add_session(storage, "21:00")
        dispatcher, conversations, _, retries = dispatcher_factory()
        message = make_message("I'll join tomorrow's 3s")
        await dispatcher.handle(message)

        reply = await dispatcher.handle(make_message("5"))

        assert "between 1 and 2" in reply
        assert conversations.get(message.key) is None
        # Only event creation leaves a retry marker
        assert retries.check(message.key) is None


class TestDispatcherGate:
    """Whether the bot answers at all."""

    @pytest.mark.asyncio
    async def test_silent_when_not_addressed(self, dispatcher_factory, make_message):
        """Test that unaddressed chatter without history is ignored."""
        dispatcher, _, history, _ = dispatcher_factory()
        message = make_message("anyone around tonight", addressed=False)

        assert await dispatcher.handle(message) is None
        assert history.get(message.key) == []

    @pytest.mark.asyncio
    async def test_recent_context_opens_gate(
        self, dispatcher_factory, make_message, clock
    ):
        """Test that an open flow keeps the bot listening for a while."""
        dispatcher, conversations, _, _ = dispatcher_factory()
        message = make_message(
            "the weather today has been really quite nice for everyone here",
            addressed=False,
        )
        conversations.update(message.key, {"pending_intent": IntentType.CONFIGURATION})
        clock.advance(minutes=2)

        assert await dispatcher.handle(message) is not None

    @pytest.mark.asyncio
    async def test_dms_disabled(self, dispatcher_factory, make_message, settings):
        """Test that direct messages are ignored when DMs are off."""
        settings.enable_dms = False
        dispatcher, _, _, _ = dispatcher_factory()

        reply = await dispatcher.handle(make_message("hi", is_direct=True, community_id=None))

        assert reply is None

    @pytest.mark.asyncio
    async def test_direct_message_is_answered(
        self, dispatcher_factory, make_message, storage
    ):
        """Test that DMs are answered as an OTHER channel."""
        dispatcher, _, _, _ = dispatcher_factory()

        reply = await dispatcher.handle(
            make_message("hey there", addressed=False, is_direct=True, community_id=None)
        )

        assert reply == "Test response"
        logs = await storage.get_conversation_logs()
        assert logs[0].channel_type == "other"


class TestDispatcherRouting:
    """Thresholds, fallback and handler errors."""

    @pytest.mark.asyncio
    async def test_low_confidence_uses_fallback(self, dispatcher_factory, make_message):
        """Test that a weak candidate goes to the fallback and keeps the open flow."""
        banter = StubCapability(IntentType.BANTER, reply="banter!")
        dispatcher, conversations, _, _ = dispatcher_factory(
            classifier=fixed_classifier(IntentType.BANTER, 0.4),
            capabilities=[banter],
        )
        message = make_message("lol")
        conversations.update(
            message.key,
            {"pending_intent": IntentType.EVENT_CREATION, "data": {"date": "friday"}},
        )

        reply = await dispatcher.handle(message)

        assert reply == "Test response"
        assert banter.requests == []
        context = conversations.get(message.key)
        assert context.pending_intent == IntentType.EVENT_CREATION
        assert context.data == {"date": "friday"}

    @pytest.mark.asyncio
    async def test_threshold_depends_on_channel(self, dispatcher_factory, make_message):
        """Test that 0.6 is enough in the schedule channel but not elsewhere."""
        banter = StubCapability(IntentType.BANTER, reply="banter!")
        dispatcher, _, _, _ = dispatcher_factory(
            classifier=fixed_classifier(IntentType.BANTER, 0.6),
            capabilities=[banter],
        )

        assert await dispatcher.handle(make_message("lol")) == "banter!"
        assert await dispatcher.handle(make_message("lol", channel_id="random")) == (
            "Test response"
        )

    @pytest.mark.asyncio
    async def test_conversation_intent_uses_fallback(
        self, dispatcher_factory, make_message, mock_llm
    ):
        """Test that plain conversation gets the fallback with the current message."""
        dispatcher, _, _, _ = dispatcher_factory()

        reply = await dispatcher.handle(make_message("good morning"))

        assert reply == "Test response"
        messages = mock_llm.complete.call_args.kwargs["messages"]
        assert messages[-1] == {"role": "user", "content": "good morning"}

    @pytest.mark.asyncio
    async def test_handler_error_apologizes(self, dispatcher_factory, make_message):
        """Test that a crashing handler yields the apology and a retry marker."""
        broken = StubCapability(IntentType.EVENT_CREATION, error=RuntimeError("boom"))
        dispatcher, conversations, _, retries = dispatcher_factory(
            classifier=fixed_classifier(IntentType.EVENT_CREATION, 0.95),
            capabilities=[broken],
        )
        message = make_message("schedule something")

        reply = await dispatcher.handle(message)

        assert reply == APOLOGY_REPLY
        assert conversations.get(message.key) is None
        assert retries.check(message.key) is not None

    @pytest.mark.asyncio
    async def test_reply_error_after_success_keeps_result(
        self, dispatcher_factory, make_message
    ):
        """Test that a reply that fails to render does not undo finished work."""
        capability = StubCapability(
            IntentType.EVENT_CREATION, render_error=KeyError("session_id")
        )
        dispatcher, conversations, _, retries = dispatcher_factory(
            classifier=fixed_classifier(IntentType.EVENT_CREATION, 0.95),
            capabilities=[capability],
        )
        message = make_message("schedule something")

        reply = await dispatcher.handle(message)

        assert reply == DONE_REPLY
        assert conversations.get(message.key) is None
        assert retries.check(message.key) is None

    @pytest.mark.asyncio
    async def test_reply_error_after_failure_apologizes(
        self, dispatcher_factory, make_message
    ):
        """Test that a reply error on an unfinished result still apologizes."""
        capability = StubCapability(
            IntentType.EVENT_CREATION,
            result=CapabilityResult(success=False, missing_fields=["time"]),
            render_error=KeyError("time"),
        )
        dispatcher, conversations, _, retries = dispatcher_factory(
            classifier=fixed_classifier(IntentType.EVENT_CREATION, 0.95),
            capabilities=[capability],
        )
        message = make_message("schedule something")

        reply = await dispatcher.handle(message)

        assert reply == APOLOGY_REPLY
        assert conversations.get(message.key) is None
        assert retries.check(message.key) is not None

    @pytest.mark.asyncio
    async def test_incomplete_merges_seed(self, dispatcher_factory, make_message):
        """Test that a continued flow passes the stored data as seed."""
        capability = StubCapability(
            IntentType.CONFIGURATION,
            result=CapabilityResult(
                success=False, data={"value": "bard"}, missing_fields=["setting"]
            ),
        )
        dispatcher, conversations, _, _ = dispatcher_factory(
            classifier=fixed_classifier(IntentType.CONFIGURATION, 0.9),
            capabilities=[capability],
        )
        message = make_message("bard")
        conversations.update(
            message.key,
            {
                "pending_intent": IntentType.CONFIGURATION,
                "accumulated_text": "change persona",
                "data": {"setting": None, "other": 1},
            },
        )

        await dispatcher.handle(message)

        request = capability.requests[0]
        assert request.content == "change persona. bard"
        assert request.latest == "bard"
        assert request.seed_data == {"setting": None, "other": 1}
        context = conversations.get(message.key)
        assert context.accumulated_text == "change persona. bard"
        assert context.data == {"setting": None, "other": 1, "value": "bard"}


class TestDispatcherHousekeeping:
    """Mention cleaning and turn logging."""

    def test_clean_content(self, dispatcher_factory, settings):
        """Test that the bot mention is stripped and empty text becomes a greeting."""
        settings.bot_user_id = "999"
        dispatcher, _, _, _ = dispatcher_factory()

        assert dispatcher.clean_content("<@999> schedule 3s") == "schedule 3s"
        assert dispatcher.clean_content("<@!999>") == "Hello"
        assert dispatcher.clean_content("   ") == "Hello"

    @pytest.mark.asyncio
    async def test_turn_is_logged(self, dispatcher_factory, make_message, storage):
        """Test that every answered turn is stored as a conversation log."""
        dispatcher, _, _, _ = dispatcher_factory()

        await dispatcher.handle(make_message("can we do 3s tomorrow at 8pm"))

        logs = await storage.get_conversation_logs()
        assert len(logs) == 1
        record = logs[0]
        assert record.detected_intent == "event_creation"
        assert record.confidence == 0.95
        assert record.success is True
        assert record.channel_type == "schedule"
        assert record.latency_ms >= 0

    @pytest.mark.asyncio
    async def test_tracking_failure_does_not_break_turn(
        self, dispatcher_factory, make_message, tracker
    ):
        """Test that a broken tracker never costs the user a reply."""
        tracker.track_turn = Mock(side_effect=RuntimeError("db down"))
        dispatcher, _, _, _ = dispatcher_factory()

        assert await dispatcher.handle(make_message("good morning")) == "Test response"
