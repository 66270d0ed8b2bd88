# shared/constants.py
import enum


class Grade(str, enum.Enum):
    TENTH = "TENTH"
    ELEVENTH = "ELEVENTH"
    TWELFTH = "TWELFTH"


class Major(str, enum.Enum):
    ACCOUNTING = "ACCOUNTING"
    SOFTWARE_ENGINEERING = "SOFTWARE_ENGINEERING"


class ClassNumber(str, enum.Enum):
    NONE = "none"
    ONE = "1"
    TWO = "2"


class Semester(str, enum.Enum):
    FIRST = "FIRST"
    SECOND = "SECOND"


class Role(str, enum.Enum):
    # students
    STUDENT = "STUDENT"
    CLASS_SECRETARY = "CLASS_SECRETARY"
    # teachers and staff
    TEACHER = "TEACHER"
    VICE_PRINCIPAL = "VICE_PRINCIPAL"
    PRINCIPAL = "PRINCIPAL"
    PARENT = "PARENT"


STUDENT_ROLES = frozenset({Role.STUDENT, Role.CLASS_SECRETARY})
TEACHER_ROLES = frozenset({Role.TEACHER})
STAFF_ROLES = frozenset({Role.VICE_PRINCIPAL, Role.PRINCIPAL})
ALL_STAFF_ROLES = TEACHER_ROLES | STAFF_ROLES

GRADE_NUMBERS = {
    Grade.TENTH: "10",
    Grade.ELEVENTH: "11",
    Grade.TWELFTH: "12",
}

MAJOR_DISPLAY_NAMES = {
    Major.ACCOUNTING: "Accounting",
    Major.SOFTWARE_ENGINEERING: "Software Engineering",
}
