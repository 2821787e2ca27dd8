"""Tests for question and distractor generation."""
import random
from collections import Counter

import pytest

from llm_tangocho import exercises
from llm_tangocho.exercises import BLANK, PLACEHOLDER_CHOICE, generate_choices, generate_question, make_cloze
from llm_tangocho.structured import QuestionType, WordRecord


def word(english, japanese="", example="", row=2, sheet="単語データ", **kwargs):
    return WordRecord(sheet_id=sheet, row_index=row, english=english, japanese=japanese,
                      example=example, **kwargs)


@pytest.fixture
def pool():
    return [
        word("cat", "猫", "The cat sleeps.", row=2),
        word("dog", "犬", row=3),
        word("bird", "鳥", row=4),
        word("fish", "魚", row=5),
    ]


@pytest.mark.parametrize("mode", list(QuestionType))
def test_always_four_choices_with_single_answer(pool, mode):
    rng = random.Random(7)
    for target in pool:
        for _ in range(20):
            q = generate_question(target, mode, pool, rng)
            assert len(q.choices) == 4
            assert q.choices.count(q.correct_answer) == 1


def test_english_to_japanese(pool):
    q = generate_question(pool[1], QuestionType.ENGLISH_TO_JAPANESE, pool, random.Random(1))
    assert q.prompt_text == "dog"
    assert q.correct_answer == "犬"
    assert set(q.choices) == {"猫", "犬", "鳥", "魚"}
    assert q.source_record is pool[1]


def test_japanese_to_english(pool):
    q = generate_question(pool[2], QuestionType.JAPANESE_TO_ENGLISH, pool, random.Random(1))
    assert q.prompt_text == "鳥"
    assert q.correct_answer == "bird"
    assert set(q.choices) == {"cat", "dog", "bird", "fish"}


def test_cloze_blanks_word_and_uses_japanese_distractors(pool):
    q = generate_question(pool[0], QuestionType.EXAMPLE_CLOZE, pool, random.Random(3))
    assert q.prompt_text == "The ______ sleeps."
    assert q.correct_answer == "cat"
    # The word's own japanese is a legal distractor for a cloze answer
    distractors = [c for c in q.choices if c != "cat"]
    assert len(distractors) == 3
    assert set(distractors) <= {"猫", "犬", "鳥", "魚"}


def test_cloze_falls_back_to_english_to_japanese_without_example(pool):
    q = generate_question(pool[1], QuestionType.EXAMPLE_CLOZE, pool, random.Random(3))
    assert q.prompt_text == "dog"
    assert q.correct_answer == "犬"


def test_make_cloze_is_case_insensitive_and_replaces_every_occurrence():
    assert make_cloze("Run! RUN fast, run.", "run") == f"{BLANK}! {BLANK} fast, {BLANK}."


def test_make_cloze_treats_word_literally():
    assert make_cloze("Use C++ daily (c++).", "c++") == f"Use {BLANK} daily ({BLANK})."


def test_choices_padded_when_pool_is_small():
    pool = [word("cat", "猫"), word("dog", "犬", row=3)]
    choices = generate_choices("猫", pool, QuestionType.ENGLISH_TO_JAPANESE, random.Random(0))
    assert len(choices) == 4
    assert sorted(choices) == sorted(["猫", "犬", PLACEHOLDER_CHOICE, PLACEHOLDER_CHOICE])


def test_choices_with_empty_pool_are_all_placeholders_but_answer():
    choices = generate_choices("猫", [], QuestionType.ENGLISH_TO_JAPANESE, random.Random(0))
    assert choices.count("猫") == 1
    assert choices.count(PLACEHOLDER_CHOICE) == 3


def test_distractors_skip_blank_fields_and_rows_without_english():
    pool = [
        word("cat", "猫"),
        word("dog", "", row=3),
        word("", "鳥", row=4),
        word("fish", "魚", row=5),
    ]
    choices = generate_choices("猫", pool, QuestionType.ENGLISH_TO_JAPANESE, random.Random(0))
    assert sorted(choices) == sorted(["猫", "魚", PLACEHOLDER_CHOICE, PLACEHOLDER_CHOICE])


def test_duplicate_distractors_are_kept():
    pool = [word("cat", "猫"), word("kitty", "子猫", row=3), word("kitten", "子猫", row=4)]
    choices = generate_choices("猫", pool, QuestionType.ENGLISH_TO_JAPANESE, random.Random(0))
    assert choices.count("子猫") == 2
    assert choices.count("猫") == 1


def test_answer_position_varies():
    pool = [word(f"w{i}", f"語{i}", row=i + 2) for i in range(10)]
    rng = random.Random(11)
    positions = Counter(
        generate_question(pool[0], QuestionType.ENGLISH_TO_JAPANESE, pool, rng).choices.index("語0")
        for _ in range(400)
    )
    assert set(positions) == {0, 1, 2, 3}


def test_every_distractor_can_be_drawn():
    pool = [word(f"w{i}", f"語{i}", row=i + 2) for i in range(8)]
    rng = random.Random(5)
    seen = set()
    for _ in range(300):
        seen.update(generate_choices("語0", pool, QuestionType.ENGLISH_TO_JAPANESE, rng))
    assert seen == {f"語{i}" for i in range(8)}


def test_seeded_rng_is_reproducible(pool):
    first = generate_question(pool[0], QuestionType.ENGLISH_TO_JAPANESE, pool, random.Random(42))
    second = generate_question(pool[0], QuestionType.ENGLISH_TO_JAPANESE, pool, random.Random(42))
    assert first.choices == second.choices


def test_mode_accepts_plain_string(pool):
    q = exercises.generate_question(pool[2], "jp-to-en", pool, random.Random(0))
    assert q.correct_answer == "bird"
