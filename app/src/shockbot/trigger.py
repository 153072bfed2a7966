import re
from typing import List

from shockbot.base import IncomingMessage, TriggerConfig, ascii_lower
from shockbot.infra.logging import logger

_WORD_RE = re.compile(r"\w+")


def tokenize(text: str) -> List[str]:
    """Split text into runs of word characters (letters, digits, underscore)."""
    if not text:
        return []
    return _WORD_RE.findall(text)


def should_fire(message: IncomingMessage, config: TriggerConfig) -> bool:
    """Decide whether a message is a fire request.

    Operator mentions win unconditionally, then whole-token trigger words.
    Reads only the immutable config, safe to call from any thread.
    """
    if message.mentioned_user_ids & config.operator_ids:
        logger.debug(f"[trigger] message mentions operator author_id={message.author_id}")
        return True

    tokens = tokenize(message.text)
    logger.debug(f"[trigger] text={message.text[:80]!r} tokens={tokens[:20]}")
    for token in tokens:
        if ascii_lower(token) in config.trigger_words:
            logger.debug(f"[trigger] caught trigger word author_id={message.author_id}")
            return True

    return False


__all__ = ["tokenize", "should_fire"]
