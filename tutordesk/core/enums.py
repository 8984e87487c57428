"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    STUDENT = "student"
    TUTOR = "tutor"
    ADMIN = "admin"


class TutoringStatusEnum(StrEnum):
    """Tutoring session lifecycle status."""

    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"
    CANCELED = "canceled"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in (TutoringStatusEnum.CANCELED, TutoringStatusEnum.COMPLETED)


class NotificationTypeEnum(StrEnum):
    """Notification categories recorded for users."""

    TUTORING_REQUEST = "TUTORING_REQUEST"
    TUTORING_CONFIRMED = "TUTORING_CONFIRMED"
    TUTORING_REJECTED = "TUTORING_REJECTED"
    TUTORING_CANCELED = "TUTORING_CANCELED"
    TUTORING_COMPLETED = "TUTORING_COMPLETED"
    TUTORING_UPDATED = "TUTORING_UPDATED"
    REMINDER_1DAY = "reminder_1day"
    REMINDER_30MIN = "reminder_30min"


class ReminderKindEnum(StrEnum):
    """Automatic reminders sent to tutors before a confirmed session."""

    ONE_DAY = "reminder_1day"
    THIRTY_MINUTES = "reminder_30min"

    @property
    def notification_type(self) -> NotificationTypeEnum:
        return NotificationTypeEnum(self.value)
