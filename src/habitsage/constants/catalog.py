"""
Centralized habit catalog: category labels and colors, icon names and the
starter templates offered when creating a habit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models.habit import HabitCategory, Schedule


@dataclass(frozen=True)
class CategoryStyle:
    label: str
    color: str


CATEGORY_CONFIG: dict[HabitCategory, CategoryStyle] = {
    HabitCategory.HEALTH: CategoryStyle("Health", "#10B981"),
    HabitCategory.PRODUCTIVITY: CategoryStyle("Productivity", "#3B82F6"),
    HabitCategory.MINDFULNESS: CategoryStyle("Mindfulness", "#8B5CF6"),
    HabitCategory.FITNESS: CategoryStyle("Fitness", "#F59E0B"),
    HabitCategory.LEARNING: CategoryStyle("Learning", "#EC4899"),
    HabitCategory.SOCIAL: CategoryStyle("Social", "#06B6D4"),
    HabitCategory.CUSTOM: CategoryStyle("Custom", "#F97316"),
}

HABIT_ICONS = [
    "Droplets", "Dumbbell", "BookOpen", "Brain", "Heart", "Sun",
    "Moon", "Coffee", "Apple", "Bike", "Footprints", "Pencil",
    "Music", "Leaf", "Flame", "Target", "Clock", "Smile",
    "Zap", "Star", "Trophy", "Gem", "Sparkles", "Shield",
]


def category_color(category: HabitCategory) -> str:
    return CATEGORY_CONFIG[HabitCategory(category)].color


def category_label(category: HabitCategory) -> str:
    return CATEGORY_CONFIG[HabitCategory(category)].label


@dataclass(frozen=True)
class HabitTemplate:
    name: str
    category: HabitCategory
    icon: str
    schedule: Schedule

    def to_fields(self) -> dict[str, Any]:
        """Keyword arguments accepted by ``HabitSnapshotManager.add_habit``."""
        return {
            "name": self.name,
            "category": self.category,
            "color": category_color(self.category),
            "icon": self.icon,
            "schedule": self.schedule,
        }


HABIT_TEMPLATES = [
    HabitTemplate("Drink 8 glasses of water", HabitCategory.HEALTH, "Droplets", Schedule.daily()),
    HabitTemplate("Morning workout", HabitCategory.FITNESS, "Dumbbell", Schedule.daily()),
    HabitTemplate("Read for 30 minutes", HabitCategory.LEARNING, "BookOpen", Schedule.daily()),
    HabitTemplate("Meditate 10 minutes", HabitCategory.MINDFULNESS, "Brain", Schedule.daily()),
    HabitTemplate("Journal before bed", HabitCategory.MINDFULNESS, "Pencil", Schedule.daily()),
    HabitTemplate("Take a walk", HabitCategory.FITNESS, "Footprints", Schedule.daily()),
    HabitTemplate("No social media before noon", HabitCategory.PRODUCTIVITY, "Shield", Schedule.weekdays()),
    HabitTemplate("Practice gratitude", HabitCategory.MINDFULNESS, "Heart", Schedule.daily()),
    HabitTemplate("Eat a healthy breakfast", HabitCategory.HEALTH, "Apple", Schedule.daily()),
    HabitTemplate("Deep work session", HabitCategory.PRODUCTIVITY, "Target", Schedule.weekdays()),
    HabitTemplate("Learn something new", HabitCategory.LEARNING, "Sparkles", Schedule.daily()),
    HabitTemplate("Call a friend or family", HabitCategory.SOCIAL, "Smile", Schedule.weekends()),
]


def find_template(name: str) -> HabitTemplate | None:
    """Case-insensitive lookup of a template by name."""
    wanted = name.strip().lower()
    for template in HABIT_TEMPLATES:
        if template.name.lower() == wanted:
            return template
    return None


__all__ = [
    "CATEGORY_CONFIG",
    "CategoryStyle",
    "HABIT_ICONS",
    "HABIT_TEMPLATES",
    "HabitTemplate",
    "category_color",
    "category_label",
    "find_template",
]
