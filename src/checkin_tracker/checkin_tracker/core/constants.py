"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

PIN_LENGTH = 4

DEFAULT_GRACE_MINUTES = 0
EXPORT_GRACE_MINUTES = 5

DEFAULT_BACKGROUND_WORKERS = 4
MAX_TASK_ERRORS = 200

BILLING_ERROR = "Error"

# Tie-break order applied after the requested sort field.
FALLBACK_SORT_CHAIN = ("timestamp", "lastName", "firstName", "performedBy", "action")

CSV_MIMETYPE = "text/csv;charset=utf-8"
COMPRESSED_FILENAME = "attendance_compressed.csv"

STUDENTS_TABLE = "students"
USERS_TABLE = "users"
RELATIONS_TABLE = "students_parents"
LOGS_TABLE = "attendance_logs"
