#!/usr/bin/env python3
"""iMIP service configuration

Scheduling email settings: response link recipients, attendee listing,
sender identity and the collaborators' endpoints.
"""
import os
from dataclasses import dataclass
from typing import List


def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class ImipConfig:
    """iMIP (calendar invitation email) configuration"""

    # "yes" = always add response links, "no" = never,
    # otherwise a comma separated list of addresses and domains
    invitation_link_recipients: str = "yes"
    # "yes" lists organizer and attendees in the email body
    invitation_list_attendees: str = "no"

    # Sender identity
    mail_domain: str = "localhost"
    instance_name: str = "isA"
    invitation_base_url: str = "http://localhost:8230"

    # Rendering
    default_language: str = "en"
    default_timezone: str = "UTC"

    # Collaborators
    resend_api_key: str = ""
    resend_base_url: str = "https://api.resend.com"
    postgres_dsn: str = "postgresql://postgres@localhost:5432/postgres"

    service_port: int = 8230

    @property
    def lists_attendees(self) -> bool:
        return self.invitation_list_attendees.strip().lower() != "no"

    @property
    def link_recipients(self) -> List[str]:
        """Normalized allow-list; whitespace is dropped and entries lower-cased"""
        compact = "".join(self.invitation_link_recipients.split()).lower()
        return compact.split(",")

    @property
    def from_email(self) -> str:
        return f"invitations-noreply@{self.mail_domain}"

    @classmethod
    def from_env(cls) -> 'ImipConfig':
        """Load iMIP config from environment variables"""
        return cls(
            invitation_link_recipients=os.getenv("IMIP_INVITATION_LINK_RECIPIENTS", "yes"),
            invitation_list_attendees=os.getenv("IMIP_INVITATION_LIST_ATTENDEES", "no"),
            mail_domain=os.getenv("IMIP_MAIL_DOMAIN", "localhost"),
            instance_name=os.getenv("IMIP_INSTANCE_NAME", "isA"),
            invitation_base_url=os.getenv("IMIP_INVITATION_BASE_URL", "http://localhost:8230"),
            default_language=os.getenv("IMIP_DEFAULT_LANGUAGE", "en"),
            default_timezone=os.getenv("IMIP_DEFAULT_TIMEZONE", "UTC"),
            resend_api_key=os.getenv("RESEND_API_KEY", ""),
            resend_base_url=os.getenv("RESEND_BASE_URL", "https://api.resend.com"),
            postgres_dsn=os.getenv("POSTGRES_DSN", "postgresql://postgres@localhost:5432/postgres"),
            service_port=_int(os.getenv("IMIP_SERVICE_PORT", "8230"), 8230),
        )
