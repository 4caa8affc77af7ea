"""
Expo push notification sender.

Sends notifications through the Expo push HTTP API. Delivery is
fire-and-forget from the caller's perspective:
- tokens that are not Expo push tokens are dropped silently
- messages are sent in chunks of at most 100 (Expo's per-request limit)
- a failing chunk is logged and skipped; nothing is raised to the caller
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx

from backend.config import settings
from backend.utils.logging import get_logger

logger = get_logger(__name__)

EXPO_CHUNK_SIZE = 100

_EXPO_TOKEN_RE = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[.+\]$")


@dataclass
class PushMessage:
    token: str
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "to": self.token,
            "title": self.title,
            "body": self.body,
            "sound": "default",
        }
        if self.data:
            payload["data"] = self.data
        return payload


def is_expo_push_token(token: Optional[str]) -> bool:
    return bool(token) and bool(_EXPO_TOKEN_RE.match(token or ""))


def chunk_messages(
    messages: Sequence[PushMessage],
    size: int = EXPO_CHUNK_SIZE
) -> List[List[PushMessage]]:
    return [list(messages[i:i + size]) for i in range(0, len(messages), size)]


def _headers() -> Dict[str, str]:
    headers = {
        "Accept": "application/json",
        "Accept-Encoding": "gzip, deflate",
        "Content-Type": "application/json",
    }
    if settings.EXPO_ACCESS_TOKEN:
        headers["Authorization"] = f"Bearer {settings.EXPO_ACCESS_TOKEN}"
    return headers


async def send_push_notifications(
    messages: Sequence[PushMessage],
    http_client: Optional[httpx.AsyncClient] = None,
) -> int:
    """
    Send a batch of push notifications.

    Args:
        messages: Notifications to send, one per device token
        http_client: Optional client (tests inject a mock transport)

    Returns:
        Number of messages handed to Expo in chunks that were accepted.
    """
    valid = [m for m in messages if is_expo_push_token(m.token)]
    dropped = len(messages) - len(valid)
    if dropped:
        logger.info(f"Dropped {dropped} push message(s) with invalid Expo tokens")
    if not valid:
        return 0

    owns_client = http_client is None
    client = http_client or httpx.AsyncClient(timeout=10.0)
    sent = 0

    try:
        for chunk in chunk_messages(valid):
            try:
                response = await client.post(
                    settings.EXPO_PUSH_URL,
                    json=[m.to_payload() for m in chunk],
                    headers=_headers(),
                )
                response.raise_for_status()
                sent += len(chunk)
            except Exception as e:
                logger.error(f"Push chunk of {len(chunk)} failed: {e}")
    finally:
        if owns_client:
            await client.aclose()

    logger.info(f"Push batch sent: {sent}/{len(valid)} message(s)")
    return sent
