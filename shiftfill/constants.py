from datetime import date

# 1 = Monday .. 7 = Sunday, matching the template store's day numbering.
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
DAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

MIN_ROTATION_LENGTH = 1
MAX_ROTATION_LENGTH = 4
DEFAULT_WEEK_START_DAY = 7
DEFAULT_LUNCH_MINUTES = 30

# Open-ended leaves run until the end of this day.
OPEN_LEAVE_END = date(2099, 12, 31)

HOLIDAY_FLAG = 1
NO_HOLIDAY_FLAG = 0

LOG_RESULT_ERROR = 1
LOG_RESULT_SUCCESS = 2
LOG_RESULT_INFO = 3

DEFAULT_WRITE_DELAY_MS = 100
DEFAULT_DELETE_DELAY_MS = 50
DEFAULT_WRITE_WORKERS = 4
DEFAULT_BATCH_PAUSE_MS = 3000
