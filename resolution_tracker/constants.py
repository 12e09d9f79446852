"""
Application constants.
Gamification tables, recurrence types and environment-driven settings.
"""
import os

# Environment settings
DATABASE_URL = os.getenv("RESOLUTION_TRACKER_DATABASE_URL", "sqlite:///./resolutions.db")

DEFAULT_LOG_DIRECTORY_PROD = "/var/log/resolution-tracker"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "RESOLUTION_TRACKER_CORS_ORIGINS", "http://localhost:8081,http://localhost:19006"
    ).split(",")
    if origin.strip()
]

# Recurrence types
RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKLY = "weekly"
RECURRENCE_MONTHLY = "monthly"
RECURRENCE_QUARTERLY = "quarterly"
RECURRENCE_CUSTOM = "custom"

# Weeks start on Sunday (Python weekday numbering: Monday=0 ... Sunday=6)
WEEK_START_DAY = 6

# Points awarded per completion based on recurrence type
BASE_POINTS = {
    RECURRENCE_DAILY: 10,
    RECURRENCE_WEEKLY: 50,
    RECURRENCE_MONTHLY: 200,
    RECURRENCE_QUARTERLY: 500,
    RECURRENCE_CUSTOM: 100,
}

# Streak length threshold -> points multiplier
STREAK_MULTIPLIERS = {
    0: 1.0,
    3: 1.25,
    7: 1.5,
    14: 1.75,
    30: 2.0,
    60: 2.5,
    90: 3.0,
}

STREAK_MILESTONES = [7, 14, 30, 60, 90, 180, 365]

# Level table: level is derived from points, never stored
LEVELS = [
    {"level": 1, "min_points": 0, "title": "Beginner", "color": "#6366F1"},
    {"level": 2, "min_points": 100, "title": "Starter", "color": "#8B5CF6"},
    {"level": 3, "min_points": 300, "title": "Committed", "color": "#A855F7"},
    {"level": 4, "min_points": 600, "title": "Dedicated", "color": "#D946EF"},
    {"level": 5, "min_points": 1000, "title": "Achiever", "color": "#EC4899"},
    {"level": 6, "min_points": 2000, "title": "Go-Getter", "color": "#F43F5E"},
    {"level": 7, "min_points": 3500, "title": "Trailblazer", "color": "#F97316"},
    {"level": 8, "min_points": 5500, "title": "Champion", "color": "#F59E0B"},
    {"level": 9, "min_points": 8000, "title": "Master", "color": "#EAB308"},
    {"level": 10, "min_points": 12000, "title": "Legend", "color": "#FACC15"},
]

# Badge criteria types
CRITERIA_STREAK = "streak"
CRITERIA_TOTAL_COMPLETIONS = "total_completions"
CRITERIA_POINTS = "points"
CRITERIA_LEVEL = "level"
CRITERIA_PARTNER_CHALLENGE = "partner_challenge"
CRITERIA_THEME_MASTERY = "theme_mastery"
CRITERIA_SPECIAL = "special"

# Badge categories
BADGE_CATEGORY_STREAK = "streak"
BADGE_CATEGORY_COMPLETION = "completion"
BADGE_CATEGORY_POINTS = "points"
BADGE_CATEGORY_PARTNER = "partner"
BADGE_CATEGORY_SPECIAL = "special"

# Pagination
DEFAULT_PAGE_SIZE = 20
