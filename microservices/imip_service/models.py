"""
iMIP Service Models

日历邀请邮件 (iMIP) 数据模型定义
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field


# Enums
class ITipMethod(str, Enum):
    """iTIP 调度方法"""
    REQUEST = "REQUEST"
    REPLY = "REPLY"
    CANCEL = "CANCEL"

    @classmethod
    def parse(cls, value: str) -> "ITipMethod":
        """Anything that is not a reply or a cancellation is handled as a request"""
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.REQUEST


class ScheduleOutcome(str, Enum):
    """调度结果 (终态)"""
    SUPPRESSED = "suppressed"
    REJECTED = "rejected"
    DROPPED = "dropped"
    SENT = "sent"
    FAILED = "failed"


class ScheduleStatus:
    """Status strings written back onto the scheduling transaction"""
    NOT_SIGNIFICANT = "1.0;We got the message, but it's not significant enough to warrant an email"
    SENT = "1.1; Scheduling message is sent via iMip"
    DELIVERY_FAILED = "5.0; EMail delivery failed"


class PartStat(str, Enum):
    """参与状态"""
    NEEDS_ACTION = "NEEDS-ACTION"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    TENTATIVE = "TENTATIVE"
    DELEGATED = "DELEGATED"


# Calendar values
class EventTime(BaseModel):
    """DTSTART / DTEND / RECURRENCE-ID style value: a date or a datetime"""
    value: Union[datetime, date]
    tzid: Optional[str] = None

    @property
    def is_all_day(self) -> bool:
        return not isinstance(self.value, datetime)

    @property
    def is_floating(self) -> bool:
        return (
            isinstance(self.value, datetime)
            and self.value.tzinfo is None
            and not self.tzid
        )

    def as_datetime(self) -> datetime:
        """Wall-clock datetime in the value's own timezone (dates become midnight)"""
        if isinstance(self.value, datetime):
            if self.value.tzinfo is None and self.tzid:
                tz = resolve_timezone(self.tzid)
                if tz is not None:
                    return self.value.replace(tzinfo=tz)
            return self.value
        return datetime.combine(self.value, time.min)

    def to_instant(self, default_tz: tzinfo = timezone.utc) -> datetime:
        """Absolute, timezone-aware point in time"""
        value = self.as_datetime()
        if value.tzinfo is None:
            value = value.replace(tzinfo=default_tz)
        return value

    def shifted(self, delta: timedelta) -> "EventTime":
        return EventTime(value=self.value + delta, tzid=self.tzid)


def resolve_timezone(tzid: Optional[str]) -> Optional[tzinfo]:
    """Map a TZID to a tzinfo, None when the id is unknown"""
    if not tzid:
        return None
    if tzid.upper() in ("UTC", "Z", "GMT"):
        return timezone.utc
    try:
        return ZoneInfo(tzid)
    except (ZoneInfoNotFoundError, ValueError):
        return None


class CalendarAddress(BaseModel):
    """ORGANIZER / ATTENDEE"""
    uri: str
    common_name: Optional[str] = None
    partstat: Optional[str] = None
    role: Optional[str] = None
    rsvp: Optional[str] = None
    language: Optional[str] = None

    @property
    def email(self) -> str:
        scheme, sep, rest = self.uri.partition(":")
        if sep and scheme.lower() == "mailto":
            return rest
        return self.uri

    @property
    def has_accepted(self) -> bool:
        return (self.partstat or "").upper() == PartStat.ACCEPTED.value


class Occurrence(BaseModel):
    """One VEVENT: a single event, a series master or an overridden instance"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    uid: str
    recurrence_id: Optional[str] = None
    sequence: Optional[int] = None
    last_modified: Optional[str] = None
    recurrence_rule: Optional[str] = None
    exdates: List[EventTime] = Field(default_factory=list)
    rdates: List[EventTime] = Field(default_factory=list)

    start: EventTime
    end: Optional[EventTime] = None
    duration: Optional[timedelta] = None

    summary: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None

    organizer: Optional[CalendarAddress] = None
    attendees: List[CalendarAddress] = Field(default_factory=list)

    # Parsed icalendar VEVENT, when the occurrence came from ICS text
    component: Optional[Any] = Field(default=None, exclude=True, repr=False)

    @property
    def is_recurring(self) -> bool:
        return bool(self.recurrence_rule)

    def find_attendee(self, uri: str) -> Optional[CalendarAddress]:
        """Attendee whose calendar address equals uri (case-insensitive)"""
        for attendee in self.attendees:
            if attendee.uri.lower() == uri.lower():
                return attendee
        return None


class NonEventComponent(BaseModel):
    """VTIMEZONE and any other non-VEVENT component, carried verbatim"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    component: Any = Field(default=None, exclude=True, repr=False)


CalendarComponent = Union[Occurrence, NonEventComponent]


class CalendarPayload(BaseModel):
    """Contents of a VCALENDAR"""
    components: List[CalendarComponent] = Field(default_factory=list)

    @property
    def occurrences(self) -> List[Occurrence]:
        return [c for c in self.components if isinstance(c, Occurrence)]

    @property
    def non_event_components(self) -> List[NonEventComponent]:
        return [c for c in self.components if isinstance(c, NonEventComponent)]


class SchedulingTransaction(BaseModel):
    """iTIP message handed over by the scheduling pipeline"""
    method: ITipMethod
    sender: str
    recipient: str
    sender_name: Optional[str] = None
    recipient_name: Optional[str] = None
    sequence: int = 0
    significant_change: bool = True
    payload: CalendarPayload
    schedule_status: Optional[str] = None


class InvitationToken(BaseModel):
    """Response token stored for the accept / decline links"""
    token: str
    attendee: str
    organizer: str
    uid: str
    recurrence_id: Optional[str] = None
    sequence: int = 0
    expiration: datetime


# Display data
class FieldValue(BaseModel):
    """HTML (change annotated) and plain text rendering of one body field"""
    html: str = ""
    plain: str = ""

    @property
    def is_empty(self) -> bool:
        return self.html == ""


# Mail
class MailAttachment(BaseModel):
    filename: str
    content: str
    content_type: str


class OutboundMessage(BaseModel):
    """Composed iMIP email"""
    from_email: str
    from_name: Optional[str] = None
    to_email: str
    to_name: Optional[str] = None
    reply_to_email: Optional[str] = None
    reply_to_name: Optional[str] = None
    subject: str
    html_body: str
    text_body: str
    attachments: List[MailAttachment] = Field(default_factory=list)


class SendResult(BaseModel):
    """Transport outcome: delivered, partially rejected or hard failure"""
    failed_recipients: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.failed_recipients and self.error is None

    @classmethod
    def delivered(cls) -> "SendResult":
        return cls()

    @classmethod
    def partial(cls, failed_recipients: List[str]) -> "SendResult":
        return cls(failed_recipients=list(failed_recipients))

    @classmethod
    def failure(cls, error: str) -> "SendResult":
        return cls(error=error)


# API models
class ScheduleRequest(BaseModel):
    """调度请求"""
    method: str = Field(..., description="iTIP method: REQUEST, REPLY or CANCEL")
    sender: str = Field(..., description="Sender calendar address (mailto:)")
    recipient: str = Field(..., description="Recipient calendar address (mailto:)")
    sender_name: Optional[str] = None
    recipient_name: Optional[str] = None
    sequence: int = 0
    significant_change: bool = True
    calendar: str = Field(..., description="iTIP message as iCalendar text")
    previous_calendar: Optional[str] = Field(
        None, description="Stored calendar object before this write, if any"
    )
    user_display_name: Optional[str] = None


class ScheduleResponse(BaseModel):
    """调度响应"""
    outcome: ScheduleOutcome
    schedule_status: Optional[str] = None


class HealthResponse(BaseModel):
    """健康检查响应"""
    status: str = "healthy"
    service: str = "imip_service"
    port: int = 8230
    version: str = "1.0.0"


class ServiceInfo(BaseModel):
    """服务信息"""
    service: str = "imip_service"
    version: str = "1.0.0"
    description: str = "iMIP scheduling notification microservice"
    capabilities: Dict[str, bool] = Field(default_factory=lambda: {
        "invitation_emails": True,
        "reply_emails": True,
        "cancellation_emails": True,
        "response_links": True,
    })
