"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    Member roles.

    - PENDING: signed up, awaiting admin approval (own profile only)
    - VISITOR: read-only access
    - MEMBER: full participation (voting, submissions, posting)
    - ADMIN: club organizer (scheduling, approvals, moderation)
    """
    PENDING = "pending"
    VISITOR = "visitor"
    MEMBER = "member"
    ADMIN = "admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class BookStatus(str, Enum):
    """
    Book lifecycle.

    waiting → nominated (added as a meeting candidate)
    waiting/nominated → selected (chosen as a meeting's book)
    selected → completed (the meeting was revealed)
    """
    WAITING = "waiting"
    NOMINATED = "nominated"
    SELECTED = "selected"
    COMPLETED = "completed"

    @classmethod
    def available_for_nomination(cls) -> list[str]:
        """Statuses offered when picking candidates for a meeting."""
        return [cls.WAITING.value, cls.NOMINATED.value, cls.SELECTED.value]


class ScheduleStatus(str, Enum):
    """Schedule status. Only confirmed schedules are stored."""
    CONFIRMED = "confirmed"


class AttendanceStatus(str, Enum):
    """RSVP answers for a confirmed meeting."""
    ATTENDING = "attending"
    NOT_ATTENDING = "not_attending"
    MAYBE = "maybe"


class CommentableType(str, Enum):
    """Content types that accept generic comments."""
    DISCUSSION = "discussion"
    REVIEW = "review"
    RECAP = "recap"


# =============================================================================
# Role sets
# =============================================================================

# Roles that count as club members (submission roster, presenter picks)
ROLES_CLUB_MEMBERS = {Role.ADMIN, Role.MEMBER}

# Roles allowed to read club content
ROLES_CAN_READ = {Role.ADMIN, Role.MEMBER, Role.VISITOR}

# Roles allowed to vote, post, submit, comment
ROLES_CAN_PARTICIPATE = {Role.ADMIN, Role.MEMBER}

# Roles an admin may assign through the console
ASSIGNABLE_ROLES = {Role.ADMIN, Role.MEMBER, Role.VISITOR}
