"""Emotion meter Core — public API"""

from src.core.emotion.models import (
    EmotionMeters,
    EmotionTuning,
    EmotionUpdate,
    StageTrace,
)
from src.core.emotion.engine import EmotionEngine

__all__ = [
    "EmotionMeters",
    "EmotionTuning",
    "EmotionUpdate",
    "StageTrace",
    "EmotionEngine",
]
