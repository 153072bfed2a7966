import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

SRC_ROOT = Path(__file__).resolve().parents[1] / "app" / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def make_discord_message(
    content: str,
    author_id: int = 1,
    message_id: int = 100,
    mentions=(),
    bot: bool = False,
    guild_id=None,
):
    message = MagicMock()
    message.content = content
    message.id = message_id
    message.author.id = author_id
    message.author.bot = bot
    message.mentions = [MagicMock(id=m) for m in mentions]
    if guild_id is None:
        message.guild = None
    else:
        message.guild.id = guild_id
    message.channel.id = 555
    message.channel.send = AsyncMock()
    message.channel.typing = AsyncMock()
    return message
