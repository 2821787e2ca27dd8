"""Tests for the llm CLI commands."""
import csv

import click
import pytest
from click.testing import CliRunner
from sqlalchemy import create_engine

from llm_tangocho import db, exercises, plugin


@pytest.fixture(autouse=True)
def setup_db(tmp_path, monkeypatch):
    test_db = str(tmp_path / "test_cli.db")
    db.engine = create_engine(f"sqlite:///{test_db}")
    db.SessionLocal = db.sessionmaker(bind=db.engine, expire_on_commit=False)
    db.init_db()
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    yield


@pytest.fixture
def cli():
    @click.group()
    def group() -> None:
        pass

    plugin.register_commands(group)
    return group


@pytest.fixture
def runner():
    return CliRunner()


def test_init_db_creates_default_sheet(cli, runner):
    result = runner.invoke(cli, ["tango-init-db"])
    assert result.exit_code == 0
    assert db.sheet_exists(db.DEFAULT_SHEET)


def test_new_sheet_and_listing(cli, runner):
    assert "created" in runner.invoke(cli, ["tango-new-sheet", "動物"]).output
    assert "already exists" in runner.invoke(cli, ["tango-new-sheet", "動物"]).output
    runner.invoke(cli, ["tango-add-word", "動物", "cat", "--japanese", "猫"])
    result = runner.invoke(cli, ["tango-sheets"])
    assert "動物: 1 rows" in result.output


def test_add_word_reports_row(cli, runner):
    result = runner.invoke(cli, ["tango-add-word", "A", "cat", "--japanese", "猫", "--example", "The cat sleeps."])
    assert result.exit_code == 0
    assert "row 2" in result.output
    assert db.read_row("A", 2)["example"] == "The cat sleeps."


def test_csv_import_export(cli, runner, tmp_path):
    src = tmp_path / "in.csv"
    with open(src, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(db.HEADERS)
        writer.writerow(["", "cat", "猫", "", "", "", "", ""])
    result = runner.invoke(cli, ["tango-import-csv", str(src), "--sheet", "A"])
    assert "Imported 1 rows" in result.output

    out = tmp_path / "out.csv"
    result = runner.invoke(cli, ["tango-export-csv", "A", str(out)])
    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8").splitlines()[1].startswith(",cat,猫")


def test_export_unknown_sheet_fails(cli, runner, tmp_path):
    result = runner.invoke(cli, ["tango-export-csv", "nope", str(tmp_path / "x.csv")])
    assert result.exit_code != 0
    assert "not found" in result.output


def test_examples_without_key_fails_cleanly(cli, runner):
    db.add_word("A", "cat", "猫")
    result = runner.invoke(cli, ["tango-examples", "A"])
    assert result.exit_code != 0
    assert "GROQ_API_KEY" in result.output


def test_translate_without_key_fails_cleanly(cli, runner):
    db.add_word("A", "cat")
    result = runner.invoke(cli, ["tango-translate", "A"])
    assert result.exit_code != 0
    assert "OPENAI_API_KEY" in result.output


def test_words_reading_list(cli, runner):
    db.add_word("A", "cat", "猫", "The cat sleeps.", "猫が寝ている。")
    db.add_word("A", "dog", "犬")
    result = runner.invoke(cli, ["tango-words", "A"])
    assert "cat - 猫" in result.output
    assert "猫が寝ている。" in result.output
    assert "dog - 犬" in result.output

    single = runner.invoke(cli, ["tango-words", "A", "--row", "3"])
    assert "dog - 犬" in single.output
    assert "cat" not in single.output


def test_challenge_with_no_words(cli, runner):
    result = runner.invoke(cli, ["tango-challenge"])
    assert result.exit_code == 0
    assert "No words available" in result.output


def test_challenge_records_answers(cli, runner, monkeypatch):
    # Keep choice order fixed so the correct answer is always option 1
    monkeypatch.setattr(exercises, "fair_shuffle", lambda items, rng=None: list(items))
    db.add_word("動物", "cat", "猫")
    db.add_word("動物", "dog", "犬")

    result = runner.invoke(
        cli,
        ["tango-challenge", "--scope", "current", "--sheet", "動物", "--count", "2"],
        input="1\n2\n",
    )

    assert result.exit_code == 0, result.output
    assert "Q1/2: cat" in result.output
    assert "Score: 1/2" in result.output
    assert db.read_row("動物", 2)["correct_count"] == 1
    dog = db.read_row("動物", 3)
    assert dog["incorrect_count"] == 1
    assert dog["is_weak"] == db.WEAK_MARK
