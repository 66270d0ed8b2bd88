# shared/schemas.py
from pydantic import BaseModel

from shared.constants import ClassNumber, Grade, GRADE_NUMBERS, Major, MAJOR_DISPLAY_NAMES


class ClassSelector(BaseModel):
    grade: Grade
    major: Major
    class_number: ClassNumber

    class Config:
        frozen = True

    @property
    def label(self) -> str:
        label = f"Grade {GRADE_NUMBERS[self.grade]} {MAJOR_DISPLAY_NAMES[self.major]}"
        if self.class_number != ClassNumber.NONE:
            label += f" {self.class_number.value}"
        return label
