import string
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def ascii_lower(text: str) -> str:
    """Lower-case A-Z only; other characters, including non-ASCII letters, are left as-is."""
    return text.translate(_ASCII_LOWER)


@dataclass(frozen=True)
class IncomingMessage:
    """Transport-neutral view of a chat message."""
    text: str
    author_id: int
    mentioned_user_ids: FrozenSet[int] = frozenset()
    message_id: Optional[int] = None
    channel_id: Optional[int] = None


@dataclass(frozen=True)
class TriggerConfig:
    operator_ids: FrozenSet[int]
    trigger_words: FrozenSet[str]

    @classmethod
    def build(cls, operator_ids: Iterable[int], trigger_words: Iterable[str]) -> "TriggerConfig":
        # trigger words are compared lower-cased, normalize once here
        return cls(
            operator_ids=frozenset(int(x) for x in operator_ids),
            trigger_words=frozenset(ascii_lower(w.strip()) for w in trigger_words if w.strip()),
        )


@dataclass(frozen=True)
class CooldownSettings:
    window_seconds: int = 60
    max_fires_per_window: int = 2


@dataclass(frozen=True)
class ShockSettings:
    intensity: int = 40
    duration_seconds: int = 1
    report_failures: bool = True


@dataclass(frozen=True)
class Config:
    trigger_words: List[str]
    operator_ids: List[int] = field(default_factory=list)
    cooldown: CooldownSettings = field(default_factory=CooldownSettings)
    shock: ShockSettings = field(default_factory=ShockSettings)

    def trigger_config(self) -> TriggerConfig:
        return TriggerConfig.build(self.operator_ids, self.trigger_words)


@dataclass(frozen=True)
class Secrets:
    discord_bot_token: str
    pishock_username: str
    pishock_api_key: str
    pishock_share_code: str
    pishock_api_name: str = "discord-shockbot"
    allowed_server_ids: FrozenSet[int] = frozenset()
