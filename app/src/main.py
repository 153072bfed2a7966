#!/usr/bin/env python3
import os
import sys
import asyncio
import discord

sys.path.append(os.path.dirname(os.path.realpath(__file__)))

from shockbot.constants import (
    CONFIG_PATH,
    LOG_FILE,
    LOG_LEVEL,
    HEARTBEAT_INTERVAL_SEC,
    COOLDOWN_EVICT_INTERVAL_SEC,
    DEDUP_TTL_SEC,
    DEDUP_MAX_ENTRIES,
    PISHOCK_TIMEOUT_SEC,
    PISHOCK_MAX_ATTEMPTS,
)
from shockbot.config import ConfigError, load_config, load_secrets
from shockbot.cooldown import build_cooldown_tracker
from shockbot.dedup import MessageDeduplicator
from shockbot.actuator.pishock import ActuatorError, ActuatorAuthError, PiShockClient
from shockbot.event import ShockDependencies, word_shock, describe_cooldown
from shockbot.infra.logging import logger, log_event, setup_logging


setup_logging(level=LOG_LEVEL, log_file=LOG_FILE or None)

try:
    config = load_config(CONFIG_PATH)
    secrets = load_secrets()
except ConfigError as e:
    logger.error(f"[startup] configuration rejected: {e}")
    sys.exit(1)

log_event(
    "startup",
    config_path=CONFIG_PATH,
    trigger_words=len(config.trigger_words),
    operators=len(config.operator_ids),
    window_s=config.cooldown.window_seconds,
    max_fires=config.cooldown.max_fires_per_window,
)

intents = discord.Intents.default()
intents.message_content = True  # trigger words need the message body
intents.guilds = True
intents.guild_messages = True
intents.dm_messages = True
intents.members = False
intents.typing = False

client = discord.Client(intents=intents)
tree = discord.app_commands.CommandTree(client)

shocker = PiShockClient(
    username=secrets.pishock_username,
    api_key=secrets.pishock_api_key,
    share_code=secrets.pishock_share_code,
    api_name=secrets.pishock_api_name,
    timeout=PISHOCK_TIMEOUT_SEC,
    max_attempts=PISHOCK_MAX_ATTEMPTS,
)
tracker = build_cooldown_tracker(config.cooldown.window_seconds, config.cooldown.max_fires_per_window)
deps = ShockDependencies(
    trigger_config=config.trigger_config(),
    tracker=tracker,
    actuator=shocker,
    shock=config.shock,
    dedup=MessageDeduplicator(ttl_seconds=DEDUP_TTL_SEC, max_entries=DEDUP_MAX_ENTRIES),
    allowed_server_ids=secrets.allowed_server_ids,
)

_background_started = False


@client.event
async def setup_hook():
    # fail before connecting to the gateway if the shocker cannot be reached with these credentials
    try:
        await shocker.get_shocker_info()
    except ActuatorAuthError as e:
        logger.error(f"[startup] PiShock rejected the configured account/share code: {e}")
        raise
    except ActuatorError as e:
        logger.warning(f"[startup] PiShock shocker check failed, continuing: {e}")


@client.event
async def on_ready():
    global _background_started
    log_event("login", user=str(client.user), guild_count=len(client.guilds))
    await tree.sync()
    if not _background_started:
        _background_started = True
        schedule_background_tasks()


async def heartbeat_task():
    while True:
        try:
            latency_ms = client.latency * 1000 if client.latency else None
            log_event("heartbeat", latency_ms=f"{latency_ms:.1f}" if latency_ms is not None else None, tracked_users=len(tracker))
        except Exception as e:
            logger.warning(f"[health] heartbeat error: {e}")
        await asyncio.sleep(HEARTBEAT_INTERVAL_SEC)


async def cooldown_evict_task():
    while True:
        await asyncio.sleep(COOLDOWN_EVICT_INTERVAL_SEC)
        evicted = tracker.evict_expired()
        if evicted:
            log_event("cooldown_evict", evicted=evicted, remaining=len(tracker))


def schedule_background_tasks():
    client.loop.create_task(heartbeat_task())
    client.loop.create_task(cooldown_evict_task())


@client.event
async def on_message(message):
    try:
        if message.author == client.user:
            return
        await word_shock(message, deps)
    except Exception as e:
        logger.exception(e)


# /cooldown:
@tree.command(name="cooldown", description="Show how many shocks you have left in the current window")
async def cooldown_command(int: discord.Interaction):
    try:
        await int.response.send_message(describe_cooldown(tracker, int.user.id), ephemeral=True)
    except Exception as e:
        logger.exception(e)


client.run(secrets.discord_bot_token, log_handler=None)
