"""
iMIP Service - Business Logic

日历调度 (iTIP) 消息的邮件通知业务逻辑层

Decides whether a scheduling transaction deserves an email, isolates the
single changed occurrence, builds the message and reports the outcome back
onto the transaction's schedule status.

Uses dependency injection for testability:
- Mail transport and token store are injected
- The previous calendar snapshot is passed per call, never kept on the instance
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional
from urllib.parse import urlparse

from email_validator import EmailNotValidError, validate_email

from core.config.imip_config import ImipConfig

from .calendar_parser import serialize_imip_calendar
from .change_matcher import ChangeSetMatcher
from .field_diff import FieldDiffPresenter
from .localization import LocalizerFactory
from .message_builder import EmailTemplate, InvitationLinkGenerator
from .models import (
    CalendarAddress,
    CalendarPayload,
    FieldValue,
    ITipMethod,
    MailAttachment,
    Occurrence,
    OutboundMessage,
    PartStat,
    ScheduleOutcome,
    ScheduleStatus,
    SchedulingTransaction,
    SendResult,
    resolve_timezone,
)
from .protocols import (
    LinkGeneratorProtocol,
    LocalizerFactoryProtocol,
    LocalizerProtocol,
    MailTransportProtocol,
)
from .invitation_tokens import InvitationTokenIssuer
from .recurrence import RecurrenceResolver

logger = logging.getLogger(__name__)

MAILTO = "mailto"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_mail_address(uri: str) -> bool:
    return urlparse(uri).scheme.lower() == MAILTO


def _strip_mailto(uri: str) -> str:
    return uri.split(":", 1)[1] if ":" in uri else uri


def expects_response(attendee: Optional[CalendarAddress]) -> bool:
    """
    Whether accept / decline buttons make sense for this attendee.

    RSVP=TRUE always asks for a response. Without RSVP, required and optional
    participants (a missing ROLE counts as required) still get the buttons.
    """
    if attendee is None:
        return False
    if (attendee.rsvp or "").upper() == "TRUE":
        return True
    role = (attendee.role or "").upper()
    return role in ("", "REQ-PARTICIPANT", "OPT-PARTICIPANT")


class ImipService:
    """
    iMIP notification decision engine

    Every call ends in exactly one ScheduleOutcome. Failures of the mail
    transport, token store or random source are logged and reported through
    the schedule status, never raised to the caller.
    """

    def __init__(
        self,
        config: ImipConfig,
        mail_transport: MailTransportProtocol,
        token_issuer: Optional[InvitationTokenIssuer] = None,
        localizer_factory: Optional[LocalizerFactoryProtocol] = None,
        link_generator: Optional[LinkGeneratorProtocol] = None,
        resolver: Optional[RecurrenceResolver] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize service with injected dependencies.

        Args:
            config: iMIP configuration
            mail_transport: Outbound mail (inject mock for testing)
            token_issuer: Response token issuer; without it no response links are added
            localizer_factory: Localizer per recipient language
            link_generator: URLs for the invitation response routes
            resolver: Last occurrence computation
            clock: Current time source
        """
        self.config = config
        self.mail_transport = mail_transport
        self.token_issuer = token_issuer
        self.localizer_factory = localizer_factory or LocalizerFactory(config.default_language)
        self.link_generator = link_generator or InvitationLinkGenerator(config.invitation_base_url)
        self.resolver = resolver or RecurrenceResolver(
            default_timezone=resolve_timezone(config.default_timezone) or timezone.utc
        )
        self.matcher = ChangeSetMatcher()
        self.presenter = FieldDiffPresenter()
        self.clock = clock or _utcnow

    # ============ Decision ============

    async def schedule(
        self,
        transaction: SchedulingTransaction,
        previous: Optional[CalendarPayload] = None,
        user_display_name: Optional[str] = None,
    ) -> ScheduleOutcome:
        """
        Handle one iTIP message.

        Args:
            transaction: Scheduling transaction; its schedule_status is written
            previous: Calendar object as stored before this write, if any
            user_display_name: Fallback sender name (the acting user)

        Returns:
            Terminal outcome of the transaction
        """
        # Not sending any emails if the system considers the update insignificant
        if not transaction.significant_change:
            transaction.schedule_status = ScheduleStatus.NOT_SIGNIFICANT
            return ScheduleOutcome.SUPPRESSED

        if not (_is_mail_address(transaction.sender) and _is_mail_address(transaction.recipient)):
            logger.debug(f"Not an email scheduling message: {transaction.sender} -> {transaction.recipient}")
            return ScheduleOutcome.DROPPED

        # don't send out mails for events that already took place
        try:
            last_occurrence = self.resolver.last_occurrence_of(transaction.payload)
        except ValueError as e:
            logger.warning(f"Cannot determine last occurrence: {e}")
            return ScheduleOutcome.DROPPED
        if last_occurrence < self.clock():
            logger.debug(f"Event already took place ({last_occurrence.isoformat()}), no email")
            return ScheduleOutcome.DROPPED

        recipient = _strip_mailto(transaction.recipient)
        if not self._is_valid_address(recipient):
            transaction.schedule_status = ScheduleStatus.DELIVERY_FAILED
            return ScheduleOutcome.REJECTED

        old_components = previous.components if previous is not None else []
        pair = self.matcher.pick_changed_pair(old_components, transaction.payload.components)
        if pair is None:
            # significant change without a changed occurrence
            transaction.schedule_status = ScheduleStatus.NOT_SIGNIFICANT
            return ScheduleOutcome.SUPPRESSED
        occurrence, old_occurrence = pair

        try:
            message = await self.compose_message(
                transaction, occurrence, old_occurrence, last_occurrence, user_display_name
            )
            result = await self.mail_transport.send(message)
        except Exception as e:
            logger.error(f"Failed to send iMIP message for {occurrence.uid}: {e}", exc_info=True)
            transaction.schedule_status = ScheduleStatus.DELIVERY_FAILED
            return ScheduleOutcome.FAILED

        return self._apply_send_result(transaction, result)

    def _apply_send_result(self, transaction: SchedulingTransaction, result: SendResult) -> ScheduleOutcome:
        if result.ok:
            transaction.schedule_status = ScheduleStatus.SENT
            return ScheduleOutcome.SENT

        if result.failed_recipients:
            logger.error(f"Unable to deliver message to {', '.join(result.failed_recipients)}")
        else:
            logger.error(f"Unable to deliver message: {result.error}")
        transaction.schedule_status = ScheduleStatus.DELIVERY_FAILED
        return ScheduleOutcome.FAILED

    @staticmethod
    def _is_valid_address(address: str) -> bool:
        if not address:
            return False
        try:
            validate_email(address, check_deliverability=False)
        except EmailNotValidError:
            return False
        return True

    # ============ Message ============

    async def compose_message(
        self,
        transaction: SchedulingTransaction,
        occurrence: Occurrence,
        old_occurrence: Optional[Occurrence],
        last_occurrence: datetime,
        user_display_name: Optional[str] = None,
    ) -> OutboundMessage:
        """Build the iMIP email for the changed occurrence"""
        method = transaction.method
        attendee = self._find_attendee(transaction, occurrence, transaction.recipient)
        language = attendee.language if attendee and attendee.language else None
        l10n = self.localizer_factory.get(language)

        if method == ITipMethod.CANCEL:
            fields = self.presenter.build_cancelled_fields(occurrence, l10n)
        else:
            fields = self.presenter.build_changed_fields(occurrence, l10n, old_occurrence)

        recipient = _strip_mailto(transaction.recipient)
        recipient_name = transaction.recipient_name or None
        sender = _strip_mailto(transaction.sender)
        sender_name = transaction.sender_name
        if not sender_name or not sender_name.strip():
            sender_name = user_display_name
        invitee_name = sender_name or sender

        template = EmailTemplate(f"dav.calendarInvite.{method.value.lower()}")
        self._add_subject_and_heading(template, l10n, transaction, occurrence, invitee_name, fields["title"].plain)
        self._add_bullet_list(template, l10n, occurrence, fields)

        # response buttons only on invitation requests
        if (
            method == ITipMethod.REQUEST
            and self.token_issuer is not None
            and expects_response(attendee)
            and self._links_allowed(recipient)
        ):
            token = await self.token_issuer.issue(transaction, occurrence, last_occurrence)
            self._add_response_buttons(template, l10n, token)

        attachment = MailAttachment(
            filename="event.ics",
            content=serialize_imip_calendar(
                method, occurrence, transaction.payload.non_event_components
            ),
            content_type=f"text/calendar; method={method.value}",
        )

        return OutboundMessage(
            from_email=self.config.from_email,
            from_name=l10n.translate("%s via %s", invitee_name, self.config.instance_name),
            to_email=recipient,
            to_name=recipient_name,
            reply_to_email=sender or None,
            reply_to_name=sender_name,
            subject=template.subject,
            html_body=template.render_html(),
            text_body=template.render_text(),
            attachments=[attachment],
        )

    @staticmethod
    def _find_attendee(
        transaction: SchedulingTransaction, occurrence: Occurrence, uri: str
    ) -> Optional[CalendarAddress]:
        """ATTENDEE matching uri, looked up in the changed occurrence first"""
        attendee = occurrence.find_attendee(uri)
        if attendee is None:
            for other in transaction.payload.occurrences:
                attendee = other.find_attendee(uri)
                if attendee is not None:
                    break
        return attendee

    def _links_allowed(self, recipient: str) -> bool:
        """invitation_link_recipients: yes, no, or a list of addresses and domains"""
        allowed = self.config.link_recipients
        if allowed[0] == "yes":
            return True
        recipient = recipient.lower()
        domain = recipient.rsplit("@", 1)[-1]
        return recipient in allowed or domain in allowed

    def _add_subject_and_heading(
        self,
        template: EmailTemplate,
        l10n: LocalizerProtocol,
        transaction: SchedulingTransaction,
        occurrence: Occurrence,
        sender: str,
        summary: str,
    ) -> None:
        method = transaction.method
        if method == ITipMethod.CANCEL:
            template.set_subject(l10n.translate("Cancelled: %s", summary))
            template.add_heading(l10n.translate("\"%s\" has been canceled", summary))
        elif method == ITipMethod.REPLY:
            # the replying attendee is the sender of a REPLY
            attendee = self._find_attendee(transaction, occurrence, transaction.sender)
            partstat = (attendee.partstat if attendee else "") or ""
            headings = {
                PartStat.ACCEPTED.value: "%s has accepted your invitation",
                PartStat.TENTATIVE.value: "%s has tentatively accepted your invitation",
                PartStat.DECLINED.value: "%s has declined your invitation",
            }
            heading = headings.get(partstat.upper(), "%s has responded your invitation")
            template.set_subject(l10n.translate("Re: %s", summary))
            template.add_heading(l10n.translate(heading, sender))
        else:
            template.set_subject(l10n.translate("Invitation: %s", summary))
            template.add_heading(l10n.translate("%s would like to invite you to \"%s\"", sender, summary))

    def _add_bullet_list(
        self,
        template: EmailTemplate,
        l10n: LocalizerProtocol,
        occurrence: Occurrence,
        fields: Dict[str, FieldValue],
    ) -> None:
        template.add_body_list_item(fields["title"].html, l10n.translate("Title:"), fields["title"].plain)
        for name, label in (("when", "Time:"), ("location", "Location:"), ("url", "Link:")):
            if not fields[name].is_empty:
                template.add_body_list_item(fields[name].html, l10n.translate(label), fields[name].plain)

        identities = self.presenter.build_attendee_fields(occurrence, self.config.lists_attendees)
        for name, label in (("organizer", "Organizer:"), ("attendees", "Attendees:")):
            if name in identities:
                template.add_body_list_item(identities[name].html, l10n.translate(label), identities[name].plain)

        # description last, it can be arbitrarily long
        if not fields["description"].is_empty:
            template.add_body_list_item(
                fields["description"].html, l10n.translate("Description:"), fields["description"].plain
            )

    def _add_response_buttons(self, template: EmailTemplate, l10n: LocalizerProtocol, token: str) -> None:
        template.add_button_group(
            l10n.translate("Accept"),
            self.link_generator.link("accept", token),
            l10n.translate("Decline"),
            self.link_generator.link("decline", token),
        )
        more_options = self.link_generator.link("options", token)
        template.add_body_text(
            '<small><a href="%s">%s</a></small>' % (more_options, l10n.translate("More options …")),
            l10n.translate("More options at %s", more_options),
        )

    async def close(self) -> None:
        """清理资源"""
        await self.mail_transport.close()
        if self.token_issuer is not None:
            await self.token_issuer.store.close()


__all__ = ["ImipService", "expects_response"]
