import re
from typing import Any, List, Sequence, Tuple

from .config import DEBUG_MODE
from .scheduler import fair_shuffle, sample_without_replacement
from .structured import Question, QuestionType, WordRecord

BLANK = "______"
PLACEHOLDER_CHOICE = "(選択肢なし)"
CHOICE_COUNT = 4


def make_cloze(example: str, word: str) -> str:
    """Blank out every case-insensitive occurrence of ``word`` in ``example``."""
    if not word:
        return example
    return re.sub(re.escape(word), BLANK, example, flags=re.IGNORECASE)


def _prompt_and_answer(word: WordRecord, mode: QuestionType) -> Tuple[str, str]:
    if mode == QuestionType.JAPANESE_TO_ENGLISH:
        return word.japanese, word.english
    if mode == QuestionType.EXAMPLE_CLOZE and word.example:
        return make_cloze(word.example, word.english), word.english
    # English-to-Japanese, and the cloze fallback for words without an example
    return word.english, word.japanese


def _choice_field(record: WordRecord, mode: QuestionType) -> str:
    if mode == QuestionType.JAPANESE_TO_ENGLISH:
        return record.english
    return record.japanese


def generate_choices(
    correct_answer: str,
    pool: Sequence[WordRecord],
    mode: QuestionType,
    rng: Any = None,
) -> List[str]:
    """
    Build four shuffled choices: the answer plus up to three distractors.

    Distractors come from the japanese field for en-to-jp and cloze questions
    and from the english field for jp-to-en questions. Entries equal to the
    answer are skipped, but repeated distractor values are left alone. Missing
    distractors are padded with ``PLACEHOLDER_CHOICE``.
    """
    mode = QuestionType(mode)
    candidates = []
    for record in pool:
        value = _choice_field(record, mode)
        if record.english and value and value != correct_answer:
            candidates.append(value)

    choices = [correct_answer] + sample_without_replacement(candidates, CHOICE_COUNT - 1, rng)
    while len(choices) < CHOICE_COUNT:
        choices.append(PLACEHOLDER_CHOICE)

    if DEBUG_MODE:
        print(f"🔍 {len(candidates)} distractor candidates for '{correct_answer}' ({mode.value})")
    return fair_shuffle(choices, rng)


def generate_question(
    word: WordRecord,
    mode: QuestionType,
    pool: Sequence[WordRecord],
    rng: Any = None,
) -> Question:
    """Turn one word into a four-choice question using ``pool`` for distractors."""
    mode = QuestionType(mode)
    prompt_text, correct_answer = _prompt_and_answer(word, mode)
    return Question(
        prompt_text=prompt_text,
        correct_answer=correct_answer,
        source_record=word,
        choices=generate_choices(correct_answer, pool, mode, rng),
    )
