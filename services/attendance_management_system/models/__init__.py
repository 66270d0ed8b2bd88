from .attendance import AttendanceType, StudentAttendance, PRESENT
