"""
Static catalogs: badges and goal themes.
Loaded once at import and never mutated; services receive them by reference.
"""
from typing import Dict, Optional, Tuple

from resolution_tracker.constants import (
    BADGE_CATEGORY_STREAK, BADGE_CATEGORY_COMPLETION, BADGE_CATEGORY_POINTS,
    BADGE_CATEGORY_PARTNER, BADGE_CATEGORY_SPECIAL,
    CRITERIA_STREAK, CRITERIA_TOTAL_COMPLETIONS, CRITERIA_POINTS, CRITERIA_LEVEL,
    CRITERIA_PARTNER_CHALLENGE, CRITERIA_SPECIAL,
)
from resolution_tracker.schemas import Badge, BadgeCriteria, Theme

def _badge(
    badge_id: str,
    name: str,
    description: str,
    icon: str,
    category: str,
    criteria_type: str,
    threshold: int,
    rarity: str,
    points_awarded: int,
    sort_order: int,
) -> Badge:
    return Badge(
        id=badge_id,
        name=name,
        description=description,
        icon=icon,
        category=category,
        criteria=BadgeCriteria(type=criteria_type, threshold=threshold),
        rarity=rarity,
        points_awarded=points_awarded,
        sort_order=sort_order,
    )

BADGES: Tuple[Badge, ...] = (
    # Streak badges
    _badge("streak_7", "1 Week Strong", "Maintain a 7-day streak", "flame",
           BADGE_CATEGORY_STREAK, CRITERIA_STREAK, 7, "common", 50, 1),
    _badge("streak_14", "2 Weeks Solid", "Maintain a 14-day streak", "flame",
           BADGE_CATEGORY_STREAK, CRITERIA_STREAK, 14, "common", 100, 2),
    _badge("streak_30", "1 Month Champion", "Maintain a 30-day streak", "flame",
           BADGE_CATEGORY_STREAK, CRITERIA_STREAK, 30, "rare", 200, 3),
    _badge("streak_60", "2 Months Strong", "Maintain a 60-day streak", "flame",
           BADGE_CATEGORY_STREAK, CRITERIA_STREAK, 60, "rare", 400, 4),
    _badge("streak_90", "3 Months Legend", "Maintain a 90-day streak", "flame",
           BADGE_CATEGORY_STREAK, CRITERIA_STREAK, 90, "epic", 600, 5),
    _badge("streak_180", "6 Months Elite", "Maintain a 180-day streak", "flame",
           BADGE_CATEGORY_STREAK, CRITERIA_STREAK, 180, "epic", 1000, 6),
    _badge("streak_365", "Year of Dedication", "Maintain a 365-day streak", "trophy",
           BADGE_CATEGORY_STREAK, CRITERIA_STREAK, 365, "legendary", 2000, 7),

    # Completion milestones
    _badge("complete_10", "Getting Started", "Complete 10 goals", "checkmark-circle",
           BADGE_CATEGORY_COMPLETION, CRITERIA_TOTAL_COMPLETIONS, 10, "common", 25, 10),
    _badge("complete_50", "Consistent", "Complete 50 goals", "checkmark-circle",
           BADGE_CATEGORY_COMPLETION, CRITERIA_TOTAL_COMPLETIONS, 50, "common", 75, 11),
    _badge("complete_100", "Century Club", "Complete 100 goals", "ribbon",
           BADGE_CATEGORY_COMPLETION, CRITERIA_TOTAL_COMPLETIONS, 100, "rare", 150, 12),
    _badge("complete_500", "High Achiever", "Complete 500 goals", "star",
           BADGE_CATEGORY_COMPLETION, CRITERIA_TOTAL_COMPLETIONS, 500, "epic", 400, 13),
    _badge("complete_1000", "Goal Master", "Complete 1000 goals", "trophy",
           BADGE_CATEGORY_COMPLETION, CRITERIA_TOTAL_COMPLETIONS, 1000, "legendary", 1000, 14),

    # Points and level milestones
    _badge("points_1000", "Point Collector", "Earn 1,000 points", "diamond",
           BADGE_CATEGORY_POINTS, CRITERIA_POINTS, 1000, "common", 0, 15),
    _badge("points_10000", "Point Hoarder", "Earn 10,000 points", "diamond",
           BADGE_CATEGORY_POINTS, CRITERIA_POINTS, 10000, "epic", 0, 16),
    _badge("level_5", "Achiever", "Reach level 5", "trending-up",
           BADGE_CATEGORY_POINTS, CRITERIA_LEVEL, 5, "rare", 0, 17),
    _badge("level_10", "Legend", "Reach level 10", "trending-up",
           BADGE_CATEGORY_POINTS, CRITERIA_LEVEL, 10, "legendary", 0, 18),

    # Partner badges
    _badge("partner_link", "Accountability Buddy", "Link with a partner", "people",
           BADGE_CATEGORY_PARTNER, CRITERIA_PARTNER_CHALLENGE, 1, "common", 50, 20),
    _badge("partner_win_1", "First Victory", "Win your first partner challenge", "medal",
           BADGE_CATEGORY_PARTNER, CRITERIA_PARTNER_CHALLENGE, 1, "common", 75, 21),
    _badge("partner_win_5", "Competitive Spirit", "Win 5 partner challenges", "medal",
           BADGE_CATEGORY_PARTNER, CRITERIA_PARTNER_CHALLENGE, 5, "rare", 150, 22),

    # Special badges
    _badge("streak_protected", "Streak Saver", "Use points to protect your streak", "shield",
           BADGE_CATEGORY_SPECIAL, CRITERIA_SPECIAL, 1, "common", 25, 30),
)

THEMES: Tuple[Theme, ...] = (
    Theme(id="health", name="Health & Fitness", icon="heart", color="#10B981",
          description="Exercise, nutrition, sleep, and wellness goals", sort_order=1),
    Theme(id="finance", name="Finance", icon="dollar-sign", color="#F59E0B",
          description="Saving, investing, budgeting, and financial goals", sort_order=2),
    Theme(id="career", name="Career", icon="briefcase", color="#3B82F6",
          description="Professional development and work goals", sort_order=3),
    Theme(id="personal", name="Personal Growth", icon="user", color="#8B5CF6",
          description="Self-improvement and personal development", sort_order=4),
    Theme(id="relationships", name="Relationships", icon="users", color="#EC4899",
          description="Family, friends, and social connections", sort_order=5),
    Theme(id="education", name="Education", icon="book-open", color="#6366F1",
          description="Learning, courses, and skill development", sort_order=6),
    Theme(id="creativity", name="Creativity", icon="palette", color="#F97316",
          description="Art, music, writing, and creative pursuits", sort_order=7),
    Theme(id="mindfulness", name="Mindfulness", icon="sun", color="#14B8A6",
          description="Meditation, journaling, and mental wellness", sort_order=8),
)

_THEMES_BY_ID: Dict[str, Theme] = {theme.id: theme for theme in THEMES}


def get_theme(theme_id: str) -> Optional[Theme]:
    """Get theme by ID"""
    return _THEMES_BY_ID.get(theme_id)
