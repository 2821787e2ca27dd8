"""
LLM Tangocho Plugin

An English/Japanese word book with AI translations, example sentences
and a four-choice challenge that tracks weak words.
"""

from . import db
from . import scheduler
from . import exercises
from . import challenge
from . import structured
from . import services
from . import plugin

__version__ = "0.1.0"
__all__ = ["db", "scheduler", "exercises", "challenge", "structured", "services", "plugin"]
