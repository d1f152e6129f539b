"""
iMIP Service Microservice

日历邀请邮件微服务 - 根据 iTIP 调度消息决定并发送邀请、回复、取消邮件
"""

from .change_matcher import ChangeSetMatcher
from .field_diff import FieldDiffPresenter
from .imip_service import ImipService
from .invitation_tokens import InvitationTokenIssuer
from .models import (
    CalendarPayload,
    ITipMethod,
    InvitationToken,
    Occurrence,
    ScheduleOutcome,
    ScheduleStatus,
    SchedulingTransaction,
)
from .recurrence import RecurrenceResolver
from .when_formatter import WhenStringFormatter

__version__ = "1.0.0"
__all__ = [
    "ChangeSetMatcher",
    "FieldDiffPresenter",
    "ImipService",
    "InvitationTokenIssuer",
    "RecurrenceResolver",
    "WhenStringFormatter",
    "CalendarPayload",
    "ITipMethod",
    "InvitationToken",
    "Occurrence",
    "ScheduleOutcome",
    "ScheduleStatus",
    "SchedulingTransaction",
]
