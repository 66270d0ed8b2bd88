# services/user_management/curriculum.py
from typing import List

from shared.constants import Grade, Major

_COMMON = [
    "religion",
    "civic_education",
    "indonesian",
    "math",
    "english",
    "physical_education",
    "history",
]

CURRICULUM = {
    Grade.TENTH: {
        Major.SOFTWARE_ENGINEERING: _COMMON + [
            "information_technology",
            "art",
            "fundamentals_of_science_and_social",
            "fundamentals_of_fluency_swe",
        ],
        Major.ACCOUNTING: _COMMON + [
            "information_technology",
            "art",
            "fundamentals_of_science_and_social",
            "fundamentals_of_fluency_accounting",
        ],
    },
    Grade.ELEVENTH: {
        Major.SOFTWARE_ENGINEERING: _COMMON + [
            "mandarin",
            "conversation",
            "web",
            "database",
            "oop",
            "creative_entrepreneurial_products_swe",
        ],
        Major.ACCOUNTING: _COMMON + [
            "mandarin",
            "conversation",
            "ap",
            "financial_accounting",
            "banking",
            "creative_entrepreneurial_products_accounting",
        ],
    },
    Grade.TWELFTH: {
        Major.SOFTWARE_ENGINEERING: _COMMON + [
            "mandarin",
            "web",
            "mobile",
            "oop",
            "pal",
        ],
        Major.ACCOUNTING: _COMMON + [
            "mandarin",
            "computerized_accounting",
            "taxation",
            "microsoft",
            "pal",
        ],
    },
}


def subjects_for(grade: Grade, major: Major) -> List[str]:
    return list(CURRICULUM.get(grade, {}).get(major, []))


def is_in_curriculum(subject_name: str, grade: Grade, major: Major) -> bool:
    return subject_name in subjects_for(grade, major)
