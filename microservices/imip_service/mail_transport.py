"""
Mail Transport

通过 Resend API 发送 iMIP 邮件 (httpx)
"""

import base64
import logging
from typing import Any, Dict, Optional

import httpx

from .models import OutboundMessage, SendResult

logger = logging.getLogger(__name__)


def _mailbox(email: str, name: Optional[str]) -> str:
    if name:
        return f"{name} <{email}>"
    return email


class ResendMailTransport:
    """Mail transport backed by the Resend HTTP API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.resend.com",
        client: Optional[httpx.AsyncClient] = None,
    ):
        if client is not None:
            self.client = client
        else:
            self.client = httpx.AsyncClient(
                base_url=base_url,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                timeout=30.0,
            )

    def build_payload(self, message: OutboundMessage) -> Dict[str, Any]:
        """Resend /emails request body"""
        payload: Dict[str, Any] = {
            "from": _mailbox(message.from_email, message.from_name),
            "to": [_mailbox(message.to_email, message.to_name)],
            "subject": message.subject,
            "html": message.html_body,
            "text": message.text_body,
        }
        if message.reply_to_email:
            payload["reply_to"] = [_mailbox(message.reply_to_email, message.reply_to_name)]
        if message.attachments:
            payload["attachments"] = [
                {
                    "filename": attachment.filename,
                    "content": base64.b64encode(attachment.content.encode("utf-8")).decode("ascii"),
                    "content_type": attachment.content_type,
                }
                for attachment in message.attachments
            ]
        return payload

    async def send(self, message: OutboundMessage) -> SendResult:
        """Send message; API rejections and network errors come back as a failed SendResult"""
        try:
            response = await self.client.post("/emails", json=self.build_payload(message))
        except httpx.HTTPError as e:
            logger.error(f"Email API request failed: {e}")
            return SendResult.failure(str(e))

        if response.status_code in (200, 201, 202):
            logger.info(f"Email sent successfully to {message.to_email}")
            return SendResult.delivered()

        if response.status_code == 422:
            # recipient rejected by the API
            return SendResult.partial([message.to_email])

        return SendResult.failure(f"Email API error: {response.status_code} - {response.text}")

    async def close(self) -> None:
        await self.client.aclose()


__all__ = ["ResendMailTransport"]
