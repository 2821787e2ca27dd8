import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Scope(str, Enum):
    ALL_SHEETS = "all"
    CURRENT_SHEET = "current"


class QuestionType(str, Enum):
    ENGLISH_TO_JAPANESE = "en-to-jp"
    JAPANESE_TO_ENGLISH = "jp-to-en"
    EXAMPLE_CLOZE = "example"


@dataclass
class WordRecord:
    sheet_id: str
    row_index: int
    english: str
    japanese: str = ""
    example: str = ""
    example_japanese: str = ""
    is_weak: bool = False
    correct_count: int = 0
    incorrect_count: int = 0
    last_studied_at: Optional[datetime.datetime] = None


@dataclass
class ChallengeConfig:
    scope: Scope = Scope.ALL_SHEETS
    question_count: int = 10
    question_type: QuestionType = QuestionType.ENGLISH_TO_JAPANESE
    prioritize_weak: bool = False
    prioritize_oldest: bool = False


@dataclass
class Question:
    prompt_text: str
    correct_answer: str
    source_record: WordRecord
    choices: List[str] = field(default_factory=list)


EXAMPLE_SENTENCE_PROMPT = """Create a simple and natural example sentence using the English word "{word}" (meaning: {meaning}).
Only output the example sentence in English, nothing else."""

TRANSLATION_SYSTEM_PROMPT = """You are a translation engine for a vocabulary word book.
Translate the user's text from {source} to {target}.
Output ONLY the translation, with no quotes, notes, romanization or explanations.
Keep it as short as the original: a single word stays a single word or short phrase."""

LANGUAGE_NAMES = {
    "en": "English",
    "ja": "Japanese",
}
