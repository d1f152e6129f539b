"""
Invitation Token Repository

邀请令牌数据访问层 - PostgreSQL (asyncpg)
"""

import logging
from typing import Optional

import asyncpg

from .models import InvitationToken
from .protocols import TokenStoreError

logger = logging.getLogger(__name__)


class InvitationTokenRepository:
    """Stores invitation response tokens in calendar_invitations"""

    def __init__(self, dsn: str, schema: str = "public", pool: Optional[asyncpg.Pool] = None):
        self.dsn = dsn
        self.schema = schema
        self.table = "calendar_invitations"
        self._pool = pool

    async def _get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(dsn=self.dsn, min_size=1, max_size=5)
        return self._pool

    async def insert_token(self, token: InvitationToken) -> None:
        """插入邀请令牌"""
        query = f'''
            INSERT INTO {self.schema}.{self.table} (
                token, attendee, organizer, uid, recurrenceid, sequence, expiration
            ) VALUES ($1, $2, $3, $4, $5, $6, $7)
        '''
        try:
            pool = await self._get_pool()
            await pool.execute(
                query,
                token.token,
                token.attendee,
                token.organizer,
                token.uid,
                token.recurrence_id,
                token.sequence,
                int(token.expiration.timestamp()),
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Error storing invitation token for {token.uid}: {e}")
            raise TokenStoreError(f"Failed to store invitation token: {e}") from e

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None


__all__ = ["InvitationTokenRepository"]
