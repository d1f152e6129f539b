"""
iMIP Service Factory - Dependency Injection Setup

Creates service instances with real or mock dependencies.
"""
from typing import Optional

from core.config import get_settings
from core.config.imip_config import ImipConfig

from .imip_service import ImipService
from .invitation_tokens import InvitationTokenIssuer
from .protocols import (
    MailTransportProtocol,
    SecureRandomProtocol,
    TokenStoreProtocol,
)


class ImipServiceFactory:
    """Factory for creating ImipService with dependencies"""

    @staticmethod
    def create_service(
        config: Optional[ImipConfig] = None,
        mail_transport: Optional[MailTransportProtocol] = None,
        token_store: Optional[TokenStoreProtocol] = None,
    ) -> ImipService:
        """
        Create ImipService instance.

        Args:
            config: iMIP configuration (default: global settings)
            mail_transport: Mail transport (default: Resend API transport)
            token_store: Token store (default: PostgreSQL repository)

        Returns:
            Configured ImipService instance
        """
        config = config or get_settings()

        # Use real implementations if not provided
        if mail_transport is None:
            from .mail_transport import ResendMailTransport
            mail_transport = ResendMailTransport(
                api_key=config.resend_api_key,
                base_url=config.resend_base_url,
            )

        if token_store is None:
            from .token_repository import InvitationTokenRepository
            token_store = InvitationTokenRepository(dsn=config.postgres_dsn)

        return ImipService(
            config=config,
            mail_transport=mail_transport,
            token_issuer=InvitationTokenIssuer(token_store),
        )

    @staticmethod
    def create_for_testing(
        mock_mail_transport: MailTransportProtocol,
        mock_token_store: TokenStoreProtocol,
        config: Optional[ImipConfig] = None,
        mock_random: Optional[SecureRandomProtocol] = None,
        clock=None,
    ) -> ImipService:
        """
        Create service with mock dependencies for testing.

        Args:
            mock_mail_transport: Mock mail transport
            mock_token_store: Mock token store
            config: Configuration (default: ImipConfig defaults)
            mock_random: Mock random source (optional)
            clock: Fixed time source (optional)

        Returns:
            ImipService with mocked dependencies
        """
        return ImipService(
            config=config or ImipConfig(),
            mail_transport=mock_mail_transport,
            token_issuer=InvitationTokenIssuer(mock_token_store, random=mock_random),
            clock=clock,
        )


def create_imip_service(config: Optional[ImipConfig] = None) -> ImipService:
    """
    Convenience function to create ImipService.

    Used by main.py lifespan context.
    """
    return ImipServiceFactory.create_service(config=config)


__all__ = [
    "ImipServiceFactory",
    "create_imip_service",
]
