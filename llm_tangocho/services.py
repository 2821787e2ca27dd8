import time
from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAI

from . import db
from .config import DEBUG_MODE, ServiceConfig
from .structured import (
    EXAMPLE_SENTENCE_PROMPT,
    LANGUAGE_NAMES,
    TRANSLATION_SYSTEM_PROMPT,
    Scope,
)

REQUEST_DELAY_SECONDS = 0.5


class ExternalServiceError(RuntimeError):
    """A translation or generation request came back unusable."""


class ModelReply:
    def __init__(self, content: str) -> None:
        self.content = content

    def text(self) -> str:
        return self.content


class OpenAIModel:
    """Chat-completions client bound to one ``ServiceConfig``.

    Works against any OpenAI-compatible endpoint; the example sentences go to
    Groq through ``base_url``.
    """
    def __init__(self, client: Any, config: ServiceConfig):
        self.client = client
        self.config = config

    def request(self, prompt_text: str, system: str = "") -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt_text})
        request: Dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
        }
        if self.config.max_tokens:
            request["max_tokens"] = self.config.max_tokens
        return request

    def prompt(self, prompt_text: str, system: str = "") -> ModelReply:
        response = self.client.chat.completions.create(**self.request(prompt_text, system))
        content = (response.choices[0].message.content or "") if response.choices else ""
        if DEBUG_MODE:
            print(f"🤖 {self.config.model}: {len(prompt_text)} chars in, {len(content)} chars out")
        return ModelReply(content)


class ChatService:
    """Base for services that talk to one configured chat model.

    A ready ``model`` (anything with ``prompt``) may be injected; otherwise the
    OpenAI client is created on first use, after the credential check.
    """

    def __init__(self, config: ServiceConfig, model: Any = None):
        self.config = config
        self._model = model

    def ensure_configured(self) -> None:
        if self._model is None:
            self.config.require_api_key()

    @property
    def model(self) -> Any:
        if self._model is None:
            api_key = self.config.require_api_key()
            client = OpenAI(api_key=api_key, base_url=self.config.base_url)
            self._model = OpenAIModel(client, self.config)
        return self._model

    def _ask(self, prompt_text: str, system: str = "") -> str:
        text = self.model.prompt(prompt_text, system=system).text().strip()
        if not text:
            raise ExternalServiceError("Empty response from model")
        return text


class TranslationService(ChatService):
    def __init__(self, config: Optional[ServiceConfig] = None, model: Any = None):
        super().__init__(config or ServiceConfig.for_translation(), model)

    def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        system = TRANSLATION_SYSTEM_PROMPT.format(
            source=LANGUAGE_NAMES.get(source_lang, source_lang),
            target=LANGUAGE_NAMES.get(target_lang, target_lang),
        )
        return self._ask(text, system=system)


class ExampleSentenceService(ChatService):
    def __init__(self, config: Optional[ServiceConfig] = None, model: Any = None):
        super().__init__(config or ServiceConfig.for_examples(), model)

    def generate_example(self, word: str, meaning: str) -> str:
        sentence = self._ask(EXAMPLE_SENTENCE_PROMPT.format(word=word, meaning=meaning))
        return sentence.strip().strip('"').strip()


# ── Batch operations ──────────────────────────────────────────────

def translate_cells(grid: Sequence[Sequence[Any]], translator: TranslationService,
                    source_lang: str = "ja", target_lang: str = "en") -> List[List[Any]]:
    """Translate every non-blank text cell; a cell that fails keeps its value."""
    translated: List[List[Any]] = []
    for row in grid:
        new_row: List[Any] = []
        for cell in row:
            if isinstance(cell, str) and cell.strip():
                try:
                    new_row.append(translator.translate(cell, source_lang, target_lang))
                except Exception as e:
                    print(f"❌ Translation failed for '{cell}': {e}")
                    new_row.append(cell)
            else:
                new_row.append(cell)
        translated.append(new_row)
    return translated


def translate_empty_japanese(sheet: str, translator: TranslationService, store: Any = None) -> int:
    """Fill blank 日本語訳 cells of ``sheet`` from the english column.

    Rows whose translation fails are reported and left blank. Returns the
    number of cells filled.
    """
    store = store or db
    translator.ensure_configured()
    if not store.sheet_exists(sheet):
        raise db.SheetNotFoundError(sheet)

    filled = 0
    for record in store.read_all_records(Scope.CURRENT_SHEET, sheet):
        if not record.english.strip() or record.japanese.strip():
            continue
        try:
            japanese = translator.translate(record.english, "en", "ja")
        except Exception as e:
            print(f"❌ Translation error (row {record.row_index}): {e}")
            continue
        store.write_field(sheet, record.row_index, "japanese", japanese)
        filled += 1

    print(f"✅ Translated {filled} words in '{sheet}'")
    return filled


def generate_examples(sheet: str, generator: ExampleSentenceService, translator: TranslationService,
                      store: Any = None, delay: Optional[float] = None) -> int:
    """Write an example sentence and its translation for every row lacking one.

    The generator's credential is checked before any row is touched. A row
    that fails is reported and skipped. Returns the number of rows filled.
    """
    store = store or db
    generator.ensure_configured()
    translator.ensure_configured()
    if not store.sheet_exists(sheet):
        raise db.SheetNotFoundError(sheet)
    delay = REQUEST_DELAY_SECONDS if delay is None else delay

    generated = 0
    for record in store.read_all_records(Scope.CURRENT_SHEET, sheet):
        if not record.english.strip() or record.example.strip():
            continue
        try:
            sentence = generator.generate_example(record.english, record.japanese)
            sentence_japanese = translator.translate(sentence, "en", "ja")
        except Exception as e:
            print(f"❌ Example generation error (row {record.row_index}): {e}")
            continue

        store.write_fields(sheet, record.row_index, example=sentence, example_japanese=sentence_japanese)
        generated += 1
        if DEBUG_MODE:
            print(f"   Row {record.row_index}: {sentence}")
        if delay:
            # Stay under the provider's rate limit
            time.sleep(delay)

    print(f"✅ Generated {generated} example sentences in '{sheet}'")
    return generated
