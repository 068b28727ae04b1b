"""End-to-end conversations through a started Application."""

import pytest
import pytest_asyncio

from pvpal.app import Application
from pvpal.config import AssistantSettings
from pvpal.models import InboundMessage


@pytest_asyncio.fixture
async def app(mock_llm):
    application = Application(
        db_path=":memory:",
        settings=AssistantSettings(
            schedule_channel_id="sched", regular_channel_id="general"
        ),
        llm=mock_llm,
    )
    await application.start()
    yield application
    await application.stop()


def say(content, user="u1", channel="sched", **kwargs):
    return InboundMessage(
        author_id=user,
        channel_id=channel,
        content=content,
        community_id="guild1",
        **kwargs,
    )


@pytest.mark.asyncio
async def test_schedule_then_roster(app, mock_llm):
    """Test creating a session, joining it and asking who is coming."""
    # Extraction output is not JSON, so capabilities use keywords
    reply = await app.dispatcher.handle(say("schedule RBGs friday", addressed=True))
    assert "time" in reply

    reply = await app.dispatcher.handle(say("9pm"))
    assert reply.startswith("Done! RBGs is on the calendar for friday at 21:00")

    reply = await app.dispatcher.handle(
        say("count me in friday as healer", user="u2", addressed=True)
    )
    assert reply == "You're in for RBGs on friday at 21:00 as healer."

    reply = await app.dispatcher.handle(
        say("who signed up for rbgs friday?", user="u3", addressed=True)
    )
    assert "(2 signed up)" in reply
    assert "<@u1>" in reply and "<@u2>" in reply

    logs = await app.storage.get_conversation_logs()
    assert [r.detected_intent for r in reversed(logs)] == [
        "event_creation",
        "event_creation",
        "participation",
        "schedule_info",
    ]


@pytest.mark.asyncio
async def test_configuration_changes_channel_routing(app):
    """Test that a configured schedule channel is used on the next turn."""
    reply = await app.dispatcher.handle(
        say("set the schedule channel to <#777>", channel="general", addressed=True)
    )
    assert "<#777>" in reply

    channel_type = await app.dispatcher._channels.get_channel_type("777", "guild1")
    assert channel_type.value == "schedule"


@pytest.mark.asyncio
async def test_unaddressed_chatter_is_ignored(app):
    """Test that the bot stays quiet in conversations it is not part of."""
    assert await app.dispatcher.handle(say("gg everyone", channel="general")) is None
    assert await app.storage.get_conversation_logs() == []
