"""
Invitation Token Issuer

为邀请响应链接 (接受/拒绝) 生成一次性令牌
"""

import logging
import secrets
import string
from datetime import datetime
from typing import Optional

from .models import InvitationToken, Occurrence, SchedulingTransaction
from .protocols import SecureRandomProtocol, TokenStoreProtocol

logger = logging.getLogger(__name__)

TOKEN_LENGTH = 60
CHAR_ALPHANUMERIC = string.ascii_letters + string.digits


class SecureRandom:
    """Random strings from the secrets module"""

    def generate(self, length: int, alphabet: str = CHAR_ALPHANUMERIC) -> str:
        return "".join(secrets.choice(alphabet) for _ in range(length))


class InvitationTokenIssuer:
    """Mints and stores the token behind the accept / decline / more options links"""

    def __init__(
        self,
        store: TokenStoreProtocol,
        random: Optional[SecureRandomProtocol] = None,
    ):
        self.store = store
        self.random = random or SecureRandom()

    async def issue(
        self,
        transaction: SchedulingTransaction,
        occurrence: Occurrence,
        expiration: datetime,
    ) -> str:
        """
        Create an invitation token valid until the series' last occurrence.

        Args:
            transaction: iTIP message; recipient is the attendee, sender the organizer
            occurrence: Changed occurrence the response refers to
            expiration: Last occurrence of the series

        Returns:
            Token string to embed in response links
        """
        token = self.random.generate(TOKEN_LENGTH, CHAR_ALPHANUMERIC)

        record = InvitationToken(
            token=token,
            attendee=transaction.recipient,
            organizer=transaction.sender,
            uid=occurrence.uid,
            recurrence_id=occurrence.recurrence_id,
            sequence=transaction.sequence,
            expiration=expiration,
        )
        await self.store.insert_token(record)

        logger.info(f"Issued invitation token {token[:10]}... for {occurrence.uid}")
        return token


__all__ = ["InvitationTokenIssuer", "SecureRandom", "TOKEN_LENGTH", "CHAR_ALPHANUMERIC"]
