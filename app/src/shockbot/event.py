import discord
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Optional, Protocol

from shockbot.base import ShockSettings, TriggerConfig
from shockbot.cooldown import CooldownTracker, Denied
from shockbot.dedup import MessageDeduplicator
from shockbot.actuator.pishock import ActuatorError
from shockbot.trigger import should_fire
from shockbot.discord.discord_utils import (
    discord_message_to_incoming,
    format_wait_message,
    reply,
    should_block,
)
from shockbot.infra.logging import logger, log_event


class Actuator(Protocol):
    async def fire(self, intensity: int, duration_seconds: int) -> None: ...


class ShockOutcome(Enum):
    IGNORED = "ignored"
    DUPLICATE = "duplicate"
    NOT_TRIGGERED = "not_triggered"
    DENIED = "denied"
    FIRED = "fired"
    FAILED = "failed"


@dataclass(frozen=True)
class ShockDependencies:
    """Everything the message path needs, built once at startup."""
    trigger_config: TriggerConfig
    tracker: CooldownTracker
    actuator: Actuator
    shock: ShockSettings
    dedup: Optional[MessageDeduplicator] = None
    allowed_server_ids: AbstractSet[int] = frozenset()


async def word_shock(message: discord.Message, deps: ShockDependencies) -> ShockOutcome:
    if message.author.bot:
        return ShockOutcome.IGNORED

    if should_block(message.guild, deps.allowed_server_ids):
        log_event("guild_blocked", guild_id=getattr(message.guild, 'id', None))
        return ShockOutcome.IGNORED

    if deps.dedup is not None and not deps.dedup.check_and_mark(message.id):
        log_event("duplicate_skip", message_id=message.id)
        return ShockOutcome.DUPLICATE

    incoming = discord_message_to_incoming(message)
    if not should_fire(incoming, deps.trigger_config):
        return ShockOutcome.NOT_TRIGGERED

    log_event("trigger_match", author_id=incoming.author_id, channel_id=incoming.channel_id)

    # admission is counted here; nothing below may undo it
    result = deps.tracker.try_fire(incoming.author_id)
    if isinstance(result, Denied):
        log_event(
            "shock_denied",
            author_id=incoming.author_id,
            max_fires=deps.tracker.max_fires_per_window,
            seconds_remaining=result.seconds_remaining,
        )
        await reply(message.channel, format_wait_message(result.seconds_remaining))
        return ShockOutcome.DENIED

    # typing indicator is cosmetic; a channel we cannot type in must not skip the shock
    try:
        await message.channel.typing()
    except discord.HTTPException as e:
        logger.warning(f"[typing] indicator failed channel_id={incoming.channel_id} error={e}")

    try:
        await deps.actuator.fire(deps.shock.intensity, deps.shock.duration_seconds)
    except ActuatorError as e:
        log_event("shock_failed", author_id=incoming.author_id, error_type=type(e).__name__, error=str(e)[:200])
        if deps.shock.report_failures:
            await reply(message.channel, f"Shock failed: {e}")
        return ShockOutcome.FAILED

    log_event(
        "shock_fired",
        author_id=incoming.author_id,
        intensity=deps.shock.intensity,
        duration_s=deps.shock.duration_seconds,
    )
    return ShockOutcome.FIRED


def describe_cooldown(tracker: CooldownTracker, user_id: int) -> str:
    used, left, reset_in = tracker.status(user_id)
    if reset_in == 0:
        return f"You have {left}/{tracker.max_fires_per_window} shocks available."
    return (
        f"You have used {used}/{tracker.max_fires_per_window} shocks. "
        f"{left} left, window resets in {reset_in} seconds."
    )


__all__ = ["ShockOutcome", "ShockDependencies", "word_shock", "describe_cooldown"]
