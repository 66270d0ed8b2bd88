from .students import Student
from .teachers import Teacher, HomeroomClass, TeachingAssignment
from .subjects import Subject
from .parents import Parent
