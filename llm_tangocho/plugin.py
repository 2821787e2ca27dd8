from . import db
from typing import Any, Optional

import llm  # type: ignore

from .config import ConfigurationError, ServiceConfig
from .structured import ChallengeConfig, QuestionType, Scope

SCOPE_CHOICES = [s.value for s in Scope]
QUESTION_TYPE_CHOICES = [t.value for t in QuestionType]


@llm.hookimpl  # type: ignore[misc]
def register_commands(cli: Any) -> None:
    import click

    @cli.command("tango-init-db")  # type: ignore[misc]
    def init_db() -> None:
        """Initialize the word book database."""
        db.init_db()
        db.create_sheet(db.DEFAULT_SHEET)
        click.echo("Database initialized.")

    @cli.command("tango-new-sheet")  # type: ignore[misc]
    @click.argument("name", default=db.DEFAULT_SHEET)
    def new_sheet(name: str) -> None:
        """Create an empty word sheet."""
        db.init_db()
        if db.create_sheet(name):
            click.echo(f"Sheet '{name}' created.")
        else:
            click.echo(f"Sheet '{name}' already exists (skipped).")

    @cli.command("tango-sheets")  # type: ignore[misc]
    def sheets() -> None:
        """List word sheets and their row counts."""
        db.init_db()
        found = db.list_sheets()
        if not found:
            click.echo("No sheets yet. Run 'llm tango-new-sheet' to create one.")
            return
        for sheet in found:
            click.echo(f"{sheet['name']}: {sheet['rows']} rows")

    @cli.command("tango-add-word")  # type: ignore[misc]
    @click.argument("sheet")
    @click.argument("english")
    @click.option("--japanese", default="", help="Japanese translation")
    @click.option("--example", default="", help="Example sentence")
    @click.option("--example-japanese", default="", help="Translation of the example sentence")
    def add_word(sheet: str, english: str, japanese: str, example: str, example_japanese: str) -> None:
        """Append a word to a sheet."""
        db.init_db()
        row = db.add_word(sheet, english, japanese, example, example_japanese)
        click.echo(f"'{english}' added to '{sheet}' at row {row}.")

    @cli.command("tango-import-csv")  # type: ignore[misc]
    @click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
    @click.option("--sheet", default=db.DEFAULT_SHEET, help="Sheet to load into")
    def import_csv(csv_path: str, sheet: str) -> None:
        """Load a sheet from a CSV file with the standard column layout."""
        db.init_db()
        count = db.import_sheet_csv(csv_path, sheet)
        click.echo(f"Imported {count} rows into '{sheet}'.")

    @cli.command("tango-export-csv")  # type: ignore[misc]
    @click.argument("sheet")
    @click.argument("csv_path", type=click.Path(dir_okay=False))
    def export_csv(sheet: str, csv_path: str) -> None:
        """Write a sheet to a CSV file."""
        db.init_db()
        try:
            count = db.export_sheet_csv(sheet, csv_path)
        except db.SheetNotFoundError:
            raise click.ClickException(f"Sheet '{sheet}' not found")
        click.echo(f"Exported {count} rows to {csv_path}.")

    @cli.command("tango-translate")  # type: ignore[misc]
    @click.argument("sheet")
    @click.option("--api-key", envvar="OPENAI_API_KEY", default=None, help="Key for the translation model")
    def translate(sheet: str, api_key: Optional[str]) -> None:
        """Fill in missing Japanese translations on a sheet."""
        from . import services
        db.init_db()
        translator = services.TranslationService(ServiceConfig.for_translation(api_key))
        try:
            count = services.translate_empty_japanese(sheet, translator)
        except ConfigurationError as e:
            raise click.ClickException(str(e))
        except db.SheetNotFoundError:
            raise click.ClickException(f"Sheet '{sheet}' not found")
        click.echo(f"Translated {count} words.")

    @cli.command("tango-translate-text")  # type: ignore[misc]
    @click.argument("texts", nargs=-1, required=True)
    @click.option("--source", default="ja", help="Source language code")
    @click.option("--target", default="en", help="Target language code")
    @click.option("--api-key", envvar="OPENAI_API_KEY", default=None, help="Key for the translation model")
    def translate_text(texts: tuple, source: str, target: str, api_key: Optional[str]) -> None:
        """Translate the given texts (Japanese to English by default)."""
        from . import services
        translator = services.TranslationService(ServiceConfig.for_translation(api_key))
        try:
            translator.ensure_configured()
        except ConfigurationError as e:
            raise click.ClickException(str(e))
        for original, translated in zip(texts, services.translate_cells([list(texts)], translator, source, target)[0]):
            click.echo(f"{original} → {translated}")

    @cli.command("tango-examples")  # type: ignore[misc]
    @click.argument("sheet")
    @click.option("--api-key", envvar="GROQ_API_KEY", default=None, help="Groq API key for example generation")
    @click.option("--translation-api-key", envvar="OPENAI_API_KEY", default=None, help="Key for the translation model")
    def examples(sheet: str, api_key: Optional[str], translation_api_key: Optional[str]) -> None:
        """Generate example sentences for words that have none."""
        from . import services
        db.init_db()
        generator = services.ExampleSentenceService(ServiceConfig.for_examples(api_key))
        translator = services.TranslationService(ServiceConfig.for_translation(translation_api_key))
        try:
            count = services.generate_examples(sheet, generator, translator)
        except ConfigurationError as e:
            raise click.ClickException(str(e))
        except db.SheetNotFoundError:
            raise click.ClickException(f"Sheet '{sheet}' not found")
        click.echo(f"Generated {count} example sentences.")

    @cli.command("tango-words")  # type: ignore[misc]
    @click.argument("sheet")
    @click.option("--row", type=int, default=None, help="Only this row")
    def words(sheet: str, row: Optional[int]) -> None:
        """Print the reading list for a sheet or a single row."""
        db.init_db()
        scope = "selection" if row is not None else "sheet"
        entries = db.get_words_for_reading(scope, sheet, row)
        if not entries:
            click.echo("No words to read.")
            return
        for entry in entries:
            click.echo(f"{entry['english']} - {entry['japanese']}")
            if entry["example"]:
                click.echo(f"    {entry['example']}")
                if entry["example_japanese"]:
                    click.echo(f"    {entry['example_japanese']}")

    @cli.command("tango-challenge")  # type: ignore[misc]
    @click.option("--scope", type=click.Choice(SCOPE_CHOICES), default=Scope.ALL_SHEETS.value, help="all sheets or the current one")
    @click.option("--sheet", default=db.DEFAULT_SHEET, help="Current sheet, used with --scope current")
    @click.option("--count", type=int, default=10, help="Number of questions")
    @click.option("--type", "question_type", type=click.Choice(QUESTION_TYPE_CHOICES), default=QuestionType.ENGLISH_TO_JAPANESE.value, help="Question type")
    @click.option("--weak", is_flag=True, help="Ask weak words first")
    @click.option("--oldest", is_flag=True, help="Ask the longest-unstudied words first")
    def challenge(scope: str, sheet: str, count: int, question_type: str, weak: bool, oldest: bool) -> None:
        """Run a four-choice challenge and record every answer."""
        from . import challenge as challenge_mod
        db.init_db()
        config = ChallengeConfig(
            scope=Scope(scope),
            question_count=count,
            question_type=QuestionType(question_type),
            prioritize_weak=weak,
            prioritize_oldest=oldest,
        )
        questions = challenge_mod.start_challenge(config, active_sheet=sheet)
        if not questions:
            click.echo("🎉 No words available for a challenge.")
            return

        correct = 0
        for number, question in enumerate(questions, 1):
            click.echo(f"\nQ{number}/{len(questions)}: {question.prompt_text}")
            for i, choice in enumerate(question.choices, 1):
                click.echo(f"  {i}. {choice}")
            picked = click.prompt("Your answer", type=click.IntRange(1, len(question.choices)))
            is_correct = question.choices[picked - 1] == question.correct_answer
            challenge_mod.record_answer(question.source_record, is_correct)
            if is_correct:
                correct += 1
                click.echo("✅ Correct!")
            else:
                click.echo(f"❌ Wrong. Answer: {question.correct_answer}")

        click.echo(f"\nScore: {correct}/{len(questions)}")
