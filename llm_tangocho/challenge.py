import datetime
from typing import Any, List, Optional, Sequence

from . import db
from .config import DEBUG_MODE
from .exercises import generate_question
from .scheduler import order_candidates
from .structured import ChallengeConfig, Question, Scope, WordRecord


def select_scope(records: Sequence[WordRecord], scope: Scope,
                 active_sheet: Optional[str] = None) -> List[WordRecord]:
    """Records belonging to ``scope``; the challenge sheet is always left out."""
    scope = Scope(scope)
    if scope == Scope.CURRENT_SHEET:
        if not active_sheet or active_sheet == db.CHALLENGE_SHEET:
            return []
        return [r for r in records if r.sheet_id == active_sheet and r.english]
    return [r for r in records if r.sheet_id != db.CHALLENGE_SHEET and r.english]


def build_challenge(
    config: ChallengeConfig,
    all_records: Sequence[WordRecord],
    active_sheet: Optional[str] = None,
    rng: Any = None,
) -> List[Question]:
    """
    Pick, order and turn records into a batch of four-choice questions.

    Only records with both english and japanese are asked. Ordering uses the
    weak-first and oldest-first passes from ``scheduler.order_candidates``,
    the batch is the first ``question_count`` of them, and distractors are drawn
    from every record in scope, including those that were filtered out.
    """
    if config.question_count <= 0 or not all_records:
        return []

    pool = select_scope(all_records, config.scope, active_sheet)
    eligible = [r for r in pool if r.english and r.japanese]
    if not eligible:
        return []

    ordered = order_candidates(
        eligible,
        prioritize_weak_first=config.prioritize_weak,
        prioritize_oldest_first=config.prioritize_oldest,
    )
    selected = ordered[:min(config.question_count, len(ordered))]

    if DEBUG_MODE:
        print(f"🎯 Challenge: {len(selected)} of {len(eligible)} eligible, pool={len(pool)}")
    return [generate_question(word, config.question_type, pool, rng) for word in selected]


def start_challenge(
    config: ChallengeConfig,
    active_sheet: Optional[str] = None,
    store: Any = None,
    rng: Any = None,
) -> List[Question]:
    """Read a fresh snapshot from ``store`` and build a challenge from it."""
    store = store or db
    records = store.read_all_records(config.scope, active_sheet)
    return build_challenge(config, records, active_sheet, rng)


def record_answer(
    record: WordRecord,
    is_correct: bool,
    store: Any = None,
    now: Optional[datetime.datetime] = None,
) -> None:
    """
    Write the outcome of one answer back to the record's row.

    A correct answer bumps the stored correct count. A wrong answer bumps the
    incorrect count and marks the word weak; nothing here ever clears that
    mark. The last-study time is set either way. If the row has disappeared
    the answer is dropped without complaint.
    """
    store = store or db
    current = store.read_row(record.sheet_id, record.row_index)
    if current is None:
        if DEBUG_MODE:
            print(f"⚠️ Row {record.row_index} of '{record.sheet_id}' is gone; answer not recorded")
        return

    updates = {"last_studied_at": now or datetime.datetime.now(datetime.UTC)}
    if is_correct:
        updates["correct_count"] = db.parse_count(current.get("correct_count")) + 1
    else:
        updates["incorrect_count"] = db.parse_count(current.get("incorrect_count")) + 1
        updates["is_weak"] = db.WEAK_MARK
    store.write_fields(record.sheet_id, record.row_index, **updates)
