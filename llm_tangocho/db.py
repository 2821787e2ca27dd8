from __future__ import annotations
from sqlalchemy import create_engine, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session, Mapped, mapped_column
import csv
import datetime
import os
from typing import Optional, List, Any, Dict

from .config import DEBUG_MODE
from .structured import Scope, WordRecord

DEFAULT_SHEET = "単語データ"
CHALLENGE_SHEET = "４択チャレンジ"
WEAK_MARK = "○"

HEADERS = [
    "苦手",
    "英語",
    "日本語訳",
    "例文",
    "例文（日本語訳）",
    "正解回数",
    "不正解回数",
    "最終学習日",
]

# Public field name -> WordRow attribute
FIELD_COLUMNS = {
    "is_weak": "weak_mark",
    "english": "english",
    "japanese": "japanese",
    "example": "example",
    "example_japanese": "example_japanese",
    "correct_count": "correct_count",
    "incorrect_count": "incorrect_count",
    "last_studied_at": "last_studied_at",
}


class Base(DeclarativeBase):
    pass
DB_PATH: str = os.environ.get("TANGOCHO_DB", "tangocho.db")
engine = create_engine(f"sqlite:///{DB_PATH}")
# Prevent attribute expiration on commit so returned objects remain accessible
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


class SheetNotFoundError(LookupError):
    """The named sheet does not exist."""


class Sheet(Base):
    __tablename__ = "sheets"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=lambda: datetime.datetime.now(datetime.UTC))


class WordRow(Base):
    """One spreadsheet row. Cells stay loosely typed like the sheet they mirror."""
    __tablename__ = "word_rows"
    __table_args__ = (UniqueConstraint("sheet_name", "row_index"),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sheet_name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    row_index: Mapped[int] = mapped_column(Integer, nullable=False)
    weak_mark: Mapped[Optional[str]] = mapped_column(String)  # A: 苦手
    english: Mapped[Optional[str]] = mapped_column(Text)  # B: 英語
    japanese: Mapped[Optional[str]] = mapped_column(Text)  # C: 日本語訳
    example: Mapped[Optional[str]] = mapped_column(Text)  # D: 例文
    example_japanese: Mapped[Optional[str]] = mapped_column(Text)  # E: 例文（日本語訳）
    correct_count: Mapped[Optional[int]] = mapped_column(Integer)  # F: 正解回数
    incorrect_count: Mapped[Optional[int]] = mapped_column(Integer)  # G: 不正解回数
    last_studied_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)  # H: 最終学習日


def is_db_initialized() -> bool:
    """Check if the database is already initialized by checking if tables exist."""
    from sqlalchemy import inspect
    inspector = inspect(engine)
    table_names = inspector.get_table_names()
    return {"sheets", "word_rows"}.issubset(set(table_names))


def init_db() -> None:
    """Initialize the database by creating all tables."""
    Base.metadata.create_all(bind=engine)


def get_session() -> Session:
    return SessionLocal()


# ── Cell parsing ──────────────────────────────────────────────────

def parse_weak_mark(value: Any) -> bool:
    if value is True:
        return True
    if isinstance(value, str):
        return value.strip() in ("TRUE", WEAK_MARK)
    return False


def parse_count(value: Any) -> int:
    """Read a counter cell; blanks and junk count as 0."""
    if value is None or value == "":
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError, OverflowError):
        pass
    try:
        return max(int(float(value)), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    # SQLite DateTime drops tzinfo, so store wall-clock UTC
    if value.tzinfo is not None:
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


def parse_timestamp(value: Any) -> Optional[datetime.datetime]:
    """Read a 最終学習日 cell as a naive UTC datetime, or None."""
    if isinstance(value, datetime.datetime):
        return _as_utc(value)
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        try:
            return _as_utc(datetime.datetime.fromisoformat(value.strip()))
        except ValueError:
            return None
    return None


def _text(value: Any) -> str:
    return str(value) if value is not None else ""


def _to_record(row: WordRow) -> WordRecord:
    return WordRecord(
        sheet_id=row.sheet_name,
        row_index=row.row_index,
        is_weak=parse_weak_mark(row.weak_mark),
        english=_text(row.english),
        japanese=_text(row.japanese),
        example=_text(row.example),
        example_japanese=_text(row.example_japanese),
        correct_count=parse_count(row.correct_count),
        incorrect_count=parse_count(row.incorrect_count),
        last_studied_at=parse_timestamp(row.last_studied_at),
    )


def _row_dict(row: WordRow) -> Dict[str, Any]:
    return {field: getattr(row, column) for field, column in FIELD_COLUMNS.items()}


# ── Sheets ────────────────────────────────────────────────────────

def sheet_exists(name: str) -> bool:
    session: Session = get_session()
    found = session.query(Sheet).filter_by(name=name).first() is not None
    session.close()
    return found


def create_sheet(name: str = DEFAULT_SHEET) -> bool:
    """Initialize a word sheet. Returns True if new, False if it already exists."""
    session: Session = get_session()
    if session.query(Sheet).filter_by(name=name).first():
        session.close()
        return False
    session.add(Sheet(name=name))
    session.commit()
    session.close()
    return True


def delete_sheet(name: str) -> bool:
    """Drop a sheet and all of its rows. Returns False if there was no such sheet."""
    session: Session = get_session()
    sheet = session.query(Sheet).filter_by(name=name).first()
    if not sheet:
        session.close()
        return False
    session.query(WordRow).filter_by(sheet_name=name).delete()
    session.delete(sheet)
    session.commit()
    session.close()
    return True


def list_sheets() -> List[Dict[str, Any]]:
    session: Session = get_session()
    sheets = session.query(Sheet).order_by(Sheet.id.asc()).all()
    result = [
        {"name": s.name, "rows": session.query(WordRow).filter_by(sheet_name=s.name).count()}
        for s in sheets
    ]
    session.close()
    return result


def _next_row_index(session: Session, sheet: str) -> int:
    last = (
        session.query(WordRow)
        .filter_by(sheet_name=sheet)
        .order_by(WordRow.row_index.desc())
        .first()
    )
    # Row 1 holds the header
    return last.row_index + 1 if last else 2


def add_word(sheet: str, english: str, japanese: str = "", example: str = "",
             example_japanese: str = "") -> int:
    """Append a word to ``sheet`` (created on demand). Returns the new row index."""
    create_sheet(sheet)
    session: Session = get_session()
    row_index = _next_row_index(session, sheet)
    session.add(WordRow(
        sheet_name=sheet,
        row_index=row_index,
        english=english,
        japanese=japanese,
        example=example,
        example_japanese=example_japanese,
    ))
    session.commit()
    session.close()
    return row_index


# ── CSV exchange ──────────────────────────────────────────────────

def import_sheet_csv(csv_path: str, sheet: str = DEFAULT_SHEET) -> int:
    """Load a sheet from CSV laid out in the 苦手..最終学習日 column order.

    The first line is the header; data lines become rows 2, 3, ... and the
    file replaces the sheet's previous contents. Blank lines keep their row
    number but store nothing. Returns rows imported.
    """
    create_sheet(sheet)
    session: Session = get_session()
    session.query(WordRow).filter_by(sheet_name=sheet).delete()
    imported = 0
    with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.reader(f)
        next(reader, None)
        for offset, cells in enumerate(reader):
            if not any(c.strip() for c in cells):
                continue
            cells = (cells + [""] * len(HEADERS))[:len(HEADERS)]
            session.add(WordRow(
                sheet_name=sheet,
                row_index=offset + 2,
                weak_mark=cells[0],
                english=cells[1],
                japanese=cells[2],
                example=cells[3],
                example_japanese=cells[4],
                correct_count=parse_count(cells[5]),
                incorrect_count=parse_count(cells[6]),
                last_studied_at=parse_timestamp(cells[7]),
            ))
            imported += 1
    session.commit()
    session.close()
    print(f"✅ Imported {imported} rows into '{sheet}'")
    return imported


def export_sheet_csv(sheet: str, csv_path: str) -> int:
    if not sheet_exists(sheet):
        raise SheetNotFoundError(sheet)
    session: Session = get_session()
    rows = (
        session.query(WordRow)
        .filter_by(sheet_name=sheet)
        .order_by(WordRow.row_index.asc())
        .all()
    )
    session.close()
    with open(csv_path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(HEADERS)
        for row in rows:
            writer.writerow([
                _text(row.weak_mark),
                _text(row.english),
                _text(row.japanese),
                _text(row.example),
                _text(row.example_japanese),
                _text(row.correct_count),
                _text(row.incorrect_count),
                row.last_studied_at.isoformat() if isinstance(row.last_studied_at, datetime.datetime) else "",
            ])
    return len(rows)


# ── Store adapter ─────────────────────────────────────────────────

def read_all_records(scope: Scope = Scope.ALL_SHEETS, active_sheet: Optional[str] = None) -> List[WordRecord]:
    """Fresh snapshot of every row in scope that has an english cell.

    Rows come back in sheet creation order, then row order. The challenge
    sheet is never part of either scope.
    """
    scope = Scope(scope)
    session: Session = get_session()
    query = (
        session.query(WordRow)
        .join(Sheet, Sheet.name == WordRow.sheet_name)
        .filter(WordRow.sheet_name != CHALLENGE_SHEET)
    )
    if scope == Scope.CURRENT_SHEET:
        if not active_sheet or active_sheet == CHALLENGE_SHEET:
            session.close()
            return []
        query = query.filter(WordRow.sheet_name == active_sheet)
    # Sheets in creation order, like spreadsheet tabs
    rows = query.order_by(Sheet.id.asc(), WordRow.row_index.asc()).all()
    session.close()

    records = [_to_record(row) for row in rows]
    if DEBUG_MODE:
        print(f"🔍 Read {len(records)} rows (scope={scope.value}, sheet={active_sheet})")
    return [r for r in records if r.english]


def read_row(sheet_id: str, row_index: int) -> Optional[Dict[str, Any]]:
    """Raw stored cells of one row, or None when the sheet or row is gone."""
    session: Session = get_session()
    row = session.query(WordRow).filter_by(sheet_name=sheet_id, row_index=row_index).first()
    session.close()
    if row is None:
        return None
    return _row_dict(row)


def write_field(sheet_id: str, row_index: int, field: str, value: Any) -> bool:
    """Set one cell. Returns False when the row no longer exists."""
    return write_fields(sheet_id, row_index, **{field: value})


def write_fields(sheet_id: str, row_index: int, **values: Any) -> bool:
    """Set several cells of one row in a single commit.

    Returns False, writing nothing, when the row no longer exists.
    """
    unknown = [field for field in values if field not in FIELD_COLUMNS]
    if unknown:
        raise ValueError(f"Unknown field: {unknown[0]}")
    session: Session = get_session()
    row = session.query(WordRow).filter_by(sheet_name=sheet_id, row_index=row_index).first()
    if row is None:
        session.close()
        return False
    for field, value in values.items():
        if field == "last_studied_at":
            value = parse_timestamp(value)
        setattr(row, FIELD_COLUMNS[field], value)
    session.commit()
    session.close()
    return True


# ── Reading list ──────────────────────────────────────────────────

def get_words_for_reading(scope: str, sheet: str, row_index: Optional[int] = None) -> List[Dict[str, str]]:
    """Words to read aloud: one selected row, or the whole sheet."""
    def entry(row: WordRow) -> Dict[str, str]:
        return {
            "english": _text(row.english),
            "japanese": _text(row.japanese),
            "example": _text(row.example),
            "example_japanese": _text(row.example_japanese),
        }

    session: Session = get_session()
    try:
        if scope == "selection":
            row = session.query(WordRow).filter_by(sheet_name=sheet, row_index=row_index).first()
            return [entry(row)] if row else []
        if scope == "sheet":
            rows = (
                session.query(WordRow)
                .filter_by(sheet_name=sheet)
                .order_by(WordRow.row_index.asc())
                .all()
            )
            return [entry(row) for row in rows if row.english]
        return []
    finally:
        session.close()


__all__ = [
    "init_db", "get_session", "is_db_initialized",
    "create_sheet", "delete_sheet", "list_sheets", "sheet_exists",
    "add_word", "import_sheet_csv", "export_sheet_csv",
    "read_all_records", "read_row", "write_field", "write_fields",
    "get_words_for_reading",
    "SheetNotFoundError", "DEFAULT_SHEET", "CHALLENGE_SHEET", "WEAK_MARK",
]
