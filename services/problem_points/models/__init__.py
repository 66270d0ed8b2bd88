from .problem_points import ProblemPoint, ProblemPointCategory, SINGLE_PER_DAY_CATEGORIES, CATEGORY_LABELS
