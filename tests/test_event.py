from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from conftest import make_discord_message
from shockbot.actuator.pishock import ActuatorUnavailableError
from shockbot.base import ShockSettings, TriggerConfig
from shockbot.cooldown import CooldownTracker
from shockbot.dedup import MessageDeduplicator
from shockbot.event import ShockDependencies, ShockOutcome, describe_cooldown, word_shock

OPERATOR = 4242


def _deps(clock, max_fires=2, actuator=None, report_failures=True, allowed=frozenset()):
    return ShockDependencies(
        trigger_config=TriggerConfig.build(operator_ids=[OPERATOR], trigger_words=["zap"]),
        tracker=CooldownTracker(window_seconds=60, max_fires_per_window=max_fires, clock=clock),
        actuator=actuator or AsyncMock(),
        shock=ShockSettings(intensity=40, duration_seconds=1, report_failures=report_failures),
        dedup=MessageDeduplicator(ttl_seconds=60, clock=clock),
        allowed_server_ids=allowed,
    )


@pytest.mark.asyncio
async def test_trigger_word_fires_actuator(clock):
    deps = _deps(clock)
    message = make_discord_message("please ZAP me")

    outcome = await word_shock(message, deps)

    assert outcome is ShockOutcome.FIRED
    deps.actuator.fire.assert_awaited_once_with(40, 1)
    message.channel.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_operator_mention_fires_actuator(clock):
    deps = _deps(clock)
    outcome = await word_shock(make_discord_message("hi", mentions=[OPERATOR]), deps)
    assert outcome is ShockOutcome.FIRED


@pytest.mark.asyncio
async def test_no_trigger_is_noop(clock):
    deps = _deps(clock)
    message = make_discord_message("zapping is not a word we match")

    assert await word_shock(message, deps) is ShockOutcome.NOT_TRIGGERED
    deps.actuator.fire.assert_not_awaited()
    assert len(deps.tracker) == 0


@pytest.mark.asyncio
async def test_bot_messages_are_ignored(clock):
    deps = _deps(clock)
    assert await word_shock(make_discord_message("zap", bot=True), deps) is ShockOutcome.IGNORED
    deps.actuator.fire.assert_not_awaited()


@pytest.mark.asyncio
async def test_denied_replies_with_wait_time(clock):
    deps = _deps(clock, max_fires=1)
    await word_shock(make_discord_message("zap", message_id=1), deps)
    clock.advance(2)
    message = make_discord_message("zap", message_id=2)

    outcome = await word_shock(message, deps)

    assert outcome is ShockOutcome.DENIED
    message.channel.send.assert_awaited_once_with("Wait 58 seconds...")
    assert deps.actuator.fire.await_count == 1


@pytest.mark.asyncio
async def test_duplicate_delivery_fires_once(clock):
    deps = _deps(clock)
    first = make_discord_message("zap", message_id=7)
    again = make_discord_message("zap", message_id=7)

    assert await word_shock(first, deps) is ShockOutcome.FIRED
    assert await word_shock(again, deps) is ShockOutcome.DUPLICATE
    assert deps.actuator.fire.await_count == 1
    assert deps.tracker.status(1)[0] == 1


@pytest.mark.asyncio
async def test_actuator_failure_keeps_count(clock):
    actuator = MagicMock()
    actuator.fire = AsyncMock(side_effect=ActuatorUnavailableError("Device currently not connected."))
    deps = _deps(clock, max_fires=1, actuator=actuator)
    message = make_discord_message("zap", message_id=1)

    outcome = await word_shock(message, deps)

    assert outcome is ShockOutcome.FAILED
    message.channel.send.assert_awaited_once()
    assert "Device currently not connected." in message.channel.send.await_args.args[0]
    # the attempt still counts against the window
    assert deps.tracker.status(1)[0] == 1
    assert await word_shock(make_discord_message("zap", message_id=2), deps) is ShockOutcome.DENIED


@pytest.mark.asyncio
async def test_actuator_failure_can_stay_silent(clock):
    actuator = MagicMock()
    actuator.fire = AsyncMock(side_effect=ActuatorUnavailableError("paused"))
    deps = _deps(clock, actuator=actuator, report_failures=False)
    message = make_discord_message("zap")

    assert await word_shock(message, deps) is ShockOutcome.FAILED
    message.channel.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_typing_failure_still_fires_actuator(clock):
    deps = _deps(clock, max_fires=1)
    message = make_discord_message("zap")
    message.channel.typing = AsyncMock(
        side_effect=discord.Forbidden(MagicMock(status=403, reason="Forbidden"), "Missing Permissions")
    )

    outcome = await word_shock(message, deps)

    assert outcome is ShockOutcome.FIRED
    deps.actuator.fire.assert_awaited_once_with(40, 1)
    assert deps.tracker.status(1)[0] == 1


@pytest.mark.asyncio
async def test_guild_allow_list(clock):
    deps = _deps(clock, allowed=frozenset({10}))

    blocked = make_discord_message("zap", message_id=1, guild_id=20)
    dm = make_discord_message("zap", message_id=2)
    allowed = make_discord_message("zap", message_id=3, guild_id=10)

    assert await word_shock(blocked, deps) is ShockOutcome.IGNORED
    assert await word_shock(dm, deps) is ShockOutcome.IGNORED
    assert await word_shock(allowed, deps) is ShockOutcome.FIRED


def test_describe_cooldown(clock):
    tracker = CooldownTracker(window_seconds=60, max_fires_per_window=2, clock=clock)
    assert describe_cooldown(tracker, 1) == "You have 2/2 shocks available."
    tracker.try_fire(1)
    clock.advance(15)
    assert describe_cooldown(tracker, 1) == "You have used 1/2 shocks. 1 left, window resets in 45 seconds."
