# shared/permissions.py
"""Single place that decides what a caller may do.

Routers resolve the resource owner (a class, a student) and ask
``require(caller, capability, owner)``; rules live in ``_RULES`` so a new role
only needs new entries here.
"""
import enum
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from shared.constants import ALL_STAFF_ROLES, Role, STAFF_ROLES, STUDENT_ROLES, TEACHER_ROLES
from shared.errors import Forbidden
from shared.schemas import ClassSelector


class Capability(str, enum.Enum):
    MANAGE_ACCOUNTS = "manage_accounts"
    OPEN_MARK_COLUMN = "open_mark_column"
    RECORD_SCORES = "record_scores"
    VIEW_CLASS_MARKS = "view_class_marks"
    RECORD_ATTENDANCE = "record_attendance"
    VIEW_CLASS_ATTENDANCE = "view_class_attendance"
    VIEW_STUDENT_RECORDS = "view_student_records"
    RECORD_PROBLEM_POINTS = "record_problem_points"


@dataclass(frozen=True)
class Caller:
    user_id: uuid.UUID
    role: Role
    # homeroom class for teachers, own class for students
    class_selector: Optional[ClassSelector] = None
    # the child a parent account belongs to
    student_id: Optional[uuid.UUID] = None


@dataclass(frozen=True)
class ResourceOwner:
    class_selector: Optional[ClassSelector] = None
    student_id: Optional[uuid.UUID] = None


def _staff_only(caller: Caller, owner: Optional[ResourceOwner]) -> bool:
    return caller.role in STAFF_ROLES


def _any_teacher_or_staff(caller: Caller, owner: Optional[ResourceOwner]) -> bool:
    return caller.role in ALL_STAFF_ROLES


def _owns_class(caller: Caller, owner: Optional[ResourceOwner]) -> bool:
    if caller.role in STAFF_ROLES:
        return True
    if caller.role not in TEACHER_ROLES and caller.role != Role.CLASS_SECRETARY:
        return False
    if caller.class_selector is None:
        return False
    return owner is None or owner.class_selector is None or owner.class_selector == caller.class_selector


def _can_view_student(caller: Caller, owner: Optional[ResourceOwner]) -> bool:
    if caller.role in ALL_STAFF_ROLES:
        return True
    if owner is None or owner.student_id is None:
        return False
    if caller.role in STUDENT_ROLES:
        return caller.user_id == owner.student_id
    if caller.role == Role.PARENT:
        return caller.student_id == owner.student_id
    return False


_RULES: Dict[Capability, Callable[[Caller, Optional[ResourceOwner]], bool]] = {
    Capability.MANAGE_ACCOUNTS: _staff_only,
    Capability.OPEN_MARK_COLUMN: _any_teacher_or_staff,
    Capability.RECORD_SCORES: _any_teacher_or_staff,
    Capability.VIEW_CLASS_MARKS: _any_teacher_or_staff,
    Capability.RECORD_ATTENDANCE: _owns_class,
    Capability.VIEW_CLASS_ATTENDANCE: _owns_class,
    Capability.VIEW_STUDENT_RECORDS: _can_view_student,
    Capability.RECORD_PROBLEM_POINTS: _any_teacher_or_staff,
}


def is_allowed(caller: Caller, capability: Capability, owner: Optional[ResourceOwner] = None) -> bool:
    return _RULES[capability](caller, owner)


def require(caller: Caller, capability: Capability, owner: Optional[ResourceOwner] = None) -> None:
    if not is_allowed(caller, capability, owner):
        raise Forbidden("You're not allowed to access this resource")
