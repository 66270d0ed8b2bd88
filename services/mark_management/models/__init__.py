from .marks import AssessmentType, SubjectMark, MarkDescription, Mark
