"""Domain enums."""

from enum import Enum


class Preference(str, Enum):
    DISCOVER = "discover"
    DISTANCE = "distance"
    BALANCED = "balanced"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Sport(str, Enum):
    CYCLING = "cycling"
    RUNNING = "running"
