import asyncio
import json
import random
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

import aiohttp

from shockbot.infra.logging import logger, log_event

API_OPERATE_URL = "https://do.pishock.com/api/apioperate"
API_SHOCKER_INFO_URL = "https://do.pishock.com/api/GetShockerInfo"

INTENSITY_MIN, INTENSITY_MAX = 1, 100
DURATION_MIN, DURATION_MAX = 1, 15

_SUCCESS_REPLIES = ("operation succeeded", "operation attempted")
# device side states that usually clear up on their own
_UNAVAILABLE_MARKERS = ("paused", "not connected", "offline", "not online")
_AUTH_MARKERS = ("not authorized", "doesn't exist", "does not exist", "already been used")


class ActuatorError(Exception):
    pass


class ActuatorUnavailableError(ActuatorError):
    """Shocker paused/offline, network trouble or server error. Retriable."""
    pass


class ActuatorAuthError(ActuatorError):
    """Credentials or share code rejected. Not retriable."""
    pass


class Op(IntEnum):
    SHOCK = 0
    VIBRATE = 1
    BEEP = 2


@dataclass(frozen=True)
class ShockerInfo:
    client_id: int
    shocker_id: int
    name: str
    paused: bool
    online: bool
    max_intensity: int
    max_duration: int


def classify_reply(text: str) -> Optional[ActuatorError]:
    """Map PiShock's plain-text reply to None (success) or the error to raise."""
    reply = text.strip()
    lowered = reply.lower()
    if any(lowered.startswith(s) for s in _SUCCESS_REPLIES):
        return None
    # "Shocker is Paused or does not exist" is about pausing, check it first
    if any(m in lowered for m in _UNAVAILABLE_MARKERS):
        return ActuatorUnavailableError(reply)
    if any(m in lowered for m in _AUTH_MARKERS):
        return ActuatorAuthError(reply)
    return ActuatorError(reply or "empty reply")


def status_error(status: int, text: str) -> Optional[ActuatorError]:
    """Map a non-2xx HTTP status to the error to raise, None for 2xx/3xx."""
    if status >= 500:
        return ActuatorUnavailableError(f"HTTP {status}: {text[:200]}")
    if status in (401, 403):
        return ActuatorAuthError(f"HTTP {status}: {text[:200]}")
    if status >= 400:
        return classify_reply(text) or ActuatorError(f"HTTP {status}: {text[:200]}")
    return None


def _check_range(name: str, value: int, lo: int, hi: int) -> None:
    if not lo <= value <= hi:
        raise ValueError(f"{name} must be in {lo}..{hi}, got {value}")


class PiShockClient:
    """Async client for the PiShock HTTP API bound to one shared shocker.

    Transient failures are retried with exponential backoff + jitter;
    auth/config failures are raised immediately.
    """

    def __init__(
        self,
        username: str,
        api_key: str,
        share_code: str,
        api_name: str = "discord-shockbot",
        timeout: int = 10,
        max_attempts: int = 3,
        backoff_base: float = 0.8,
    ):
        self.username = username
        self.api_key = api_key
        self.share_code = share_code
        self.api_name = api_name
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_base = backoff_base

    async def _request(self, url: str, payload: Dict[str, Any]) -> Tuple[int, str]:
        """POST json, return (status, body). Network trouble surfaces as ActuatorUnavailableError."""
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.post(url, json=payload) as resp:
                    return resp.status, await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ActuatorUnavailableError(f"{type(e).__name__}: {e}") from e

    async def _operate_once(self, payload: Dict[str, Any]) -> None:
        status, text = await self._request(API_OPERATE_URL, payload)
        error = status_error(status, text) or classify_reply(text)
        if error is not None:
            raise error

    async def operate(self, op: Op, intensity: Optional[int], duration_seconds: int) -> None:
        _check_range("duration_seconds", duration_seconds, DURATION_MIN, DURATION_MAX)
        payload: Dict[str, Any] = {
            "Username": self.username,
            "Name": self.api_name,
            "Code": self.share_code,
            "Duration": duration_seconds,
            "Apikey": self.api_key,
            "Op": int(op),
        }
        if intensity is not None:
            _check_range("intensity", intensity, INTENSITY_MIN, INTENSITY_MAX)
            payload["Intensity"] = intensity

        for attempt in range(1, self.max_attempts + 1):
            start = time.perf_counter()
            try:
                await self._operate_once(payload)
                log_event(
                    "pishock_call",
                    op=op.name,
                    attempt=attempt,
                    intensity=intensity,
                    duration_s=duration_seconds,
                    invoke_ms=f"{(time.perf_counter() - start) * 1000:.1f}",
                )
                return
            except ActuatorUnavailableError as e:
                if attempt == self.max_attempts:
                    log_event("pishock_call_failed", op=op.name, attempt=attempt, retriable=True, error=str(e)[:300])
                    raise
                sleep_for = self.backoff_base * (2 ** (attempt - 1))
                jitter = random.uniform(0, 0.1) * sleep_for
                log_event("pishock_retry", op=op.name, attempt=attempt, sleep_ms=int((sleep_for + jitter) * 1000), error=str(e)[:200])
                await asyncio.sleep(sleep_for + jitter)
            except ActuatorError as e:
                log_event("pishock_call_failed", op=op.name, attempt=attempt, retriable=False, error=str(e)[:300])
                raise

    async def fire(self, intensity: int, duration_seconds: int) -> None:
        await self.operate(Op.SHOCK, intensity, duration_seconds)

    async def vibrate(self, intensity: int, duration_seconds: int) -> None:
        await self.operate(Op.VIBRATE, intensity, duration_seconds)

    async def beep(self, duration_seconds: int) -> None:
        await self.operate(Op.BEEP, None, duration_seconds)

    async def get_shocker_info(self) -> ShockerInfo:
        """Look up the shocker behind the share code. Used once at startup."""
        payload = {"Username": self.username, "Apikey": self.api_key, "Code": self.share_code}
        status, text = await self._request(API_SHOCKER_INFO_URL, payload)
        error = status_error(status, text)
        if error is not None:
            raise error
        try:
            data = json.loads(text)
        except ValueError:
            data = None

        if not isinstance(data, dict):
            # errors come back as plain text, same wording as apioperate
            raise classify_reply(text) or ActuatorError(f"unexpected reply: {text[:200]}")

        info = ShockerInfo(
            client_id=int(data.get("clientId", 0)),
            shocker_id=int(data.get("id", 0)),
            name=str(data.get("name", "")),
            paused=bool(data.get("paused", False)),
            online=bool(data.get("online", False)),
            max_intensity=int(data.get("maxIntensity", INTENSITY_MAX)),
            max_duration=int(data.get("maxDuration", DURATION_MAX)),
        )
        logger.info(
            f"[pishock] shocker name={info.name!r} id={info.shocker_id} online={info.online} "
            f"paused={info.paused} max_intensity={info.max_intensity} max_duration={info.max_duration}"
        )
        return info


__all__ = [
    "ActuatorError",
    "ActuatorUnavailableError",
    "ActuatorAuthError",
    "Op",
    "ShockerInfo",
    "PiShockClient",
    "classify_reply",
    "status_error",
]
