"""Outbound HTTP: LINE Messaging API replies and profile lookups, plus JSON content feeds.

Failures here never propagate. Replies are best effort and report success as a
bool; lookups fall back to a safe default.
"""

import logging
from typing import Any, List, Optional

import httpx

from groupbot.constants import LINE_GROUP_MEMBER_PROFILE, LINE_REPLY
from groupbot.models.dc_models import LineMessageModel

TIMEOUT = 15.0


async def fetch_json(url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> Any:
    """GET a JSON document

    Args:
        url (str): Feed URL
        transport (Optional[httpx.AsyncBaseTransport]): Custom transport, used by tests

    Returns:
        Any: The decoded document, None on any HTTP or decoding failure
    """
    try:
        async with httpx.AsyncClient(timeout=TIMEOUT, transport=transport) as client:
            response = await client.get(url)
        if response.status_code != 200:
            logging.warning(f"Fetching {url} returned {response.status_code}")
            return None
        return response.json()
    except (httpx.HTTPError, ValueError) as e:
        logging.error(f"Failed to fetch {url}: {e}")
        return None


class LineClient:
    def __init__(self, access_token: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.access_token = access_token
        self.transport = transport

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.access_token}"}

    async def send_line_messages(self, reply_token: str, messages: List[LineMessageModel]) -> bool:
        """Send up to five messages with one reply token

        Args:
            reply_token (str): Reply token of the inbound event, usable once
            messages (List[LineMessageModel]): Messages in display order

        Returns:
            bool: True if LINE accepted the reply
        """
        payload = {
            "replyToken": reply_token,
            "messages": [message.model_dump(by_alias=True, exclude_none=True) for message in messages],
        }
        try:
            async with httpx.AsyncClient(timeout=TIMEOUT, transport=self.transport) as client:
                response = await client.post(LINE_REPLY, json=payload, headers=self.headers)
        except httpx.HTTPError as e:
            logging.error(f"Failed to send LINE reply: {e}")
            return False
        if response.status_code != 200:
            logging.error(f"LINE reply rejected: {response.status_code} {response.text}")
            return False
        return True

    async def send_reply(self, reply_token: str, text: str) -> bool:
        return await self.send_line_messages(reply_token, [LineMessageModel(type="text", text=text)])

    async def send_image_reply(self, reply_token: str, image_url: str) -> bool:
        message = LineMessageModel(
            type="image",
            original_content_url=image_url,
            preview_image_url=image_url,
        )
        return await self.send_line_messages(reply_token, [message])

    async def send_video_reply(self, reply_token: str, video_url: str) -> bool:
        # The video itself doubles as its preview.
        message = LineMessageModel(
            type="video",
            original_content_url=video_url,
            preview_image_url=video_url,
        )
        return await self.send_line_messages(reply_token, [message])

    async def fetch_group_member_profile(self, user_id: str, group_id: str) -> str:
        """Resolve the display name of a group member

        Args:
            user_id (str): LINE user id
            group_id (str): LINE group id

        Returns:
            str: The display name, or user_id itself if the lookup fails
        """
        url = LINE_GROUP_MEMBER_PROFILE.format(group_id=group_id, user_id=user_id)
        try:
            async with httpx.AsyncClient(timeout=TIMEOUT, transport=self.transport) as client:
                response = await client.get(url, headers=self.headers)
            if response.status_code != 200:
                logging.warning(f"Profile lookup for {user_id} returned {response.status_code}")
                return user_id
            return response.json().get("displayName") or user_id
        except (httpx.HTTPError, ValueError) as e:
            logging.error(f"Failed to fetch profile of {user_id}: {e}")
            return user_id
