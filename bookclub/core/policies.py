"""Centralized authorization predicates for club actions.

Every handler asks ``can(actor, action, resource)`` once instead of
re-implementing role/presenter/author comparisons inline.

- roles: roles allowed regardless of the resource
- presenter: the resource's presenter (a Schedule) is also allowed
- author: the resource's author (``user_id``) is also allowed
"""

from dataclasses import dataclass
from enum import Enum

from bookclub.db.enums import ROLES_CAN_PARTICIPATE, ROLES_CAN_READ, Role
from bookclub.schemas.auth import UserSession


class Action(str, Enum):
    """Authorizable actions."""
    READ = "read"
    PARTICIPATE = "participate"  # vote, RSVP, submit, comment, post
    CONFIRM_SCHEDULE = "confirm_schedule"
    UPDATE_SCHEDULE_DETAILS = "update_schedule_details"
    CANCEL_SCHEDULE = "cancel_schedule"
    MANAGE_CANDIDATES = "manage_candidates"
    SELECT_BOOK = "select_book"
    REVEAL_MEETING = "reveal_meeting"
    DELETE_CONTENT = "delete_content"
    MANAGE_MEMBERS = "manage_members"


@dataclass(frozen=True)
class ActionPolicy:
    """Roles allowed outright + per-resource relationships that also grant access."""

    roles: frozenset[Role]
    presenter: bool = False
    author: bool = False


_ADMIN = frozenset({Role.ADMIN})

POLICIES: dict[Action, ActionPolicy] = {
    Action.READ: ActionPolicy(roles=frozenset(ROLES_CAN_READ)),
    Action.PARTICIPATE: ActionPolicy(roles=frozenset(ROLES_CAN_PARTICIPATE)),
    Action.CONFIRM_SCHEDULE: ActionPolicy(roles=_ADMIN),
    Action.UPDATE_SCHEDULE_DETAILS: ActionPolicy(roles=_ADMIN, presenter=True),
    Action.CANCEL_SCHEDULE: ActionPolicy(roles=_ADMIN),
    Action.MANAGE_CANDIDATES: ActionPolicy(roles=_ADMIN, presenter=True),
    Action.SELECT_BOOK: ActionPolicy(roles=_ADMIN, presenter=True),
    Action.REVEAL_MEETING: ActionPolicy(roles=_ADMIN, presenter=True),
    Action.DELETE_CONTENT: ActionPolicy(roles=_ADMIN, author=True),
    Action.MANAGE_MEMBERS: ActionPolicy(roles=_ADMIN),
}


def get_policy(action: Action) -> ActionPolicy:
    """Fetch an action policy or raise KeyError."""
    return POLICIES[action]


def can(actor: UserSession, action: Action, resource: object | None = None) -> bool:
    """Return whether ``actor`` may perform ``action`` on ``resource``."""
    policy = get_policy(action)
    if actor.role in policy.roles:
        return True

    # Relationship grants never apply to accounts awaiting approval or read-only accounts
    if actor.role not in ROLES_CAN_PARTICIPATE or resource is None:
        return False

    if policy.presenter and getattr(resource, "presenter_id", None) == actor.user_id:
        return True
    if policy.author and getattr(resource, "user_id", None) == actor.user_id:
        return True
    return False
