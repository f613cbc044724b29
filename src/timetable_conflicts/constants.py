"""Constants for conflict detection and resolution."""

# Time strings are 24-hour "HH:MM"; a single-digit hour ("9:00") is accepted
TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"

# Day-of-week convention: 1 = Monday ... 7 = Sunday
MIN_DAY = 1
MAX_DAY = 7
DAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}

# Days considered when suggesting a move to another day
TEACHING_DAYS = [1, 2, 3, 4, 5]

# Start times tried when suggesting a move within the same day
CANONICAL_START_TIMES = ["08:00", "10:00", "13:00", "15:00"]

# Teaching day bounds used when listing free windows
DAY_START = "08:00"
DAY_END = "18:00"

# Afternoon starts at noon for the "no afternoons" preference
AFTERNOON_START = "12:00"

# Duration sanity bounds for a single session (minutes)
MIN_DURATION_MINUTES = 30
MAX_DURATION_MINUTES = 240

# Lecture rooms below this capacity are flagged
MIN_LECTURE_CAPACITY = 30

# Gap (minutes) under which consecutive classes in different buildings are "tight"
BUILDING_TRANSFER_MINUTES = 0

# Default daily teaching limit when a faculty member has no preference
MAX_DAILY_TEACHING_HOURS = 6

# Suggestion limits
MAX_SUGGESTIONS = 5
MAX_SWAP_SUGGESTIONS = 2
MAX_ROOM_SUGGESTIONS = 3

# Conflict scores used for ranking whole-schedule conflicts
CONFLICT_SCORES = {
    "room": 1000,
    "faculty": 1000,
    "student": 900,
    "course": 800,
    "room_type_lab": 500,
    "capacity": 400,
    "room_type_lecture": 200,
    "schedule": 200,
}

# Impact / success probability of each kind of suggestion
SUGGESTION_WEIGHTS = {
    "move_time": {"impact_per_hour": 5, "probability": 0.8},
    "move_day": {"impact": 20, "probability": 0.7},
    "swap": {"impact": 30, "probability": 0.6},
    "change_room": {"impact": 10, "probability": 0.9},
    "relax": {"impact": 5, "probability": 1.0},
}

# Room ranking bonuses when proposing a replacement room
ROOM_TYPE_MATCH_BONUS = 50
ROOM_CAPACITY_BONUS = 20

# Default relaxation budget for automatic resolution
DEFAULT_MAX_RELAXATION = 3

# Constraint identifiers seeded in every registry
ROOM_OVERLAP = "no-room-overlap"
FACULTY_OVERLAP = "no-faculty-overlap"
STUDENT_OVERLAP = "no-student-overlap"
ROOM_TYPE_MATCH = "room-type-match"
ROOM_CAPACITY = "room-capacity"
BUILDING_DISTANCE = "building-distance"
FACULTY_WORKLOAD = "faculty-workload"

# Ids with these prefixes are cleared between scheduling runs
DYNAMIC_PREFIXES = ("dynamic-", "pref-")
PREFERENCE_PREFIX = "pref-"
