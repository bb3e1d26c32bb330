"""Content generation for new words."""
import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import google.generativeai as genai
import nltk
from deep_translator import GoogleTranslator
from deep_translator.exceptions import BaseError as TranslatorError
from nltk.corpus import wordnet
from requests.exceptions import RequestException

from wordcoach import monitoring
from wordcoach.config import Settings, settings as default_settings
from wordcoach.exceptions import GenerationError

logger = logging.getLogger(__name__)

# WordNet part-of-speech tags; "s" is a satellite adjective
WORDNET_CATEGORIES = {
    "n": "noun",
    "v": "verb",
    "a": "adjective",
    "s": "adjective",
    "r": "adverb",
}

CATEGORIES = (
    "noun",
    "verb",
    "adjective",
    "adverb",
    "preposition",
    "conjunction",
    "pronoun",
    "interjection",
    "phrase",
)

CONTENT_FIELDS = ("translation", "definition", "example", "category")


@dataclass(frozen=True)
class WordContent:
    """Generated content for a word."""
    translation: str
    definition: str
    example: str
    category: Optional[str] = None


class ContentGenerator:
    """Generate word content from WordNet and Google Translate."""
    provider = "wordnet"
    _last_check: Optional[datetime] = None
    _check_interval = timedelta(days=7)  # Check for corpus updates every 7 days

    def __init__(self, source_lang: str = "en", target_lang: str = "es"):
        self.source_lang = source_lang
        self.target_lang = target_lang
        self._check_and_update_nltk()
        logger.info(f"ContentGenerator initialized ({source_lang} -> {target_lang})")

    @classmethod
    def _check_and_update_nltk(cls) -> None:
        """Make sure the WordNet corpus is available."""
        current_time = datetime.now()
        if cls._last_check is not None and current_time - cls._last_check <= cls._check_interval:
            return

        try:
            nltk.data.find("corpora/wordnet")
        except LookupError:
            # Wordnet is not installed, download it
            nltk.download("wordnet", quiet=True)
            logger.info("Downloaded NLTK wordnet data")
        cls._last_check = current_time

    def generate_translation(self, word: str) -> str:
        """Translate a word or sentence into the target language."""
        try:
            translator = GoogleTranslator(source=self.source_lang, target=self.target_lang)
            translation = translator.translate(word)
        except (TranslatorError, RequestException) as e:
            logger.error(f"Error generating translation for word: {word}, error: {e}")
            raise GenerationError(f"Could not translate '{word}'") from e
        if not translation:
            raise GenerationError(f"Empty translation for '{word}'")
        logger.info(f"Translation generated for word: {word}, translation: {translation}")
        return translation

    @staticmethod
    def _synsets(word: str):
        return wordnet.synsets(word.strip().replace(" ", "_"))

    def generate_category(self, word: str) -> Optional[str]:
        """Get the most common part of speech of a word."""
        synsets = self._synsets(word)
        if not synsets:
            return None
        return WORDNET_CATEGORIES.get(synsets[0].pos())

    def generate(self, word: str) -> WordContent:
        """Generate translation, definition, example and category for a word."""
        synsets = self._synsets(word)
        if not synsets:
            monitoring.generation_errors.labels(provider=self.provider).inc()
            raise GenerationError(f"No dictionary entry for '{word}'")

        definition = synsets[0].definition()
        example = next((syn.examples()[0] for syn in synsets if syn.examples()), "")
        if not definition or not example:
            monitoring.generation_errors.labels(provider=self.provider).inc()
            raise GenerationError(f"Incomplete dictionary entry for '{word}'")

        try:
            translation = self.generate_translation(word)
        except GenerationError:
            monitoring.generation_errors.labels(provider=self.provider).inc()
            raise

        content = WordContent(
            translation=translation,
            definition=definition,
            example=example,
            category=WORDNET_CATEGORIES.get(synsets[0].pos()),
        )
        logger.debug(f"Content generated for word: {word}, content: {content}")
        return content


WORD_PROMPT = """I need information about the {source} word: "{word}"

Please provide:
1. Translation into {target} (a single word or short phrase, the most common one)
2. Definition in {source} (clear and concise, at most 2 lines)
3. One natural usage example in {source}, as a full sentence
4. Grammatical category (one of: {categories})

IMPORTANT: Reply ONLY with this exact JSON, no extra text, no markdown, no backticks:
{{
  "translation": "...",
  "definition": "...",
  "example": "...",
  "category": "..."
}}"""

CATEGORY_PROMPT = """What is the grammatical category of the {source} word "{word}"?

Reply with ONE word only: {categories}"""


def extract_json(text: str) -> dict:
    """Pull the first JSON object out of a model reply."""
    match = re.search(r"\{.*\}", text or "", re.DOTALL)
    if not match:
        raise GenerationError("No JSON object in model response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise GenerationError(f"Malformed JSON in model response: {e}") from e
    if not isinstance(data, dict):
        raise GenerationError("Model response is not a JSON object")
    return data


class GeminiContentGenerator:
    """Generate word content with a Google Gemini model."""
    provider = "gemini"

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-1.5-flash",
        source_lang: str = "en",
        target_lang: str = "es",
    ):
        self.api_key = api_key
        self.model_name = model_name
        self.source_lang = source_lang
        self.target_lang = target_lang
        self._client = None

    @property
    def client(self):
        """Lazy-load the Gemini client."""
        if self._client is None:
            genai.configure(api_key=self.api_key)
            self._client = genai.GenerativeModel(model_name=self.model_name)
        return self._client

    def _ask(self, prompt: str) -> str:
        try:
            response = self.client.generate_content(prompt)
            return response.text
        except Exception as e:
            # The SDK raises google.api_core and ValueError subclasses alike
            logger.error(f"Gemini request failed: {e}")
            raise GenerationError(f"Content generation request failed: {e}") from e

    def generate(self, word: str) -> WordContent:
        """Generate translation, definition, example and category for a word."""
        prompt = WORD_PROMPT.format(
            word=word,
            source=self.source_lang,
            target=self.target_lang,
            categories=", ".join(CATEGORIES),
        )
        try:
            data = extract_json(self._ask(prompt))
            missing = [name for name in CONTENT_FIELDS if not str(data.get(name) or "").strip()]
            if missing:
                raise GenerationError(f"Incomplete model response, missing: {', '.join(missing)}")
        except GenerationError:
            monitoring.generation_errors.labels(provider=self.provider).inc()
            raise

        content = WordContent(
            translation=str(data["translation"]).strip(),
            definition=str(data["definition"]).strip(),
            example=str(data["example"]).strip(),
            category=str(data["category"]).strip().lower(),
        )
        logger.info(f"Content generated for word: {word}, translation: {content.translation}")
        return content

    def generate_category(self, word: str) -> Optional[str]:
        """Ask the model for the grammatical category of a word."""
        prompt = CATEGORY_PROMPT.format(
            word=word,
            source=self.source_lang,
            categories=", ".join(CATEGORIES),
        )
        try:
            answer = self._ask(prompt).strip().lower().strip(".")
        except GenerationError:
            return None
        return answer if answer in CATEGORIES else None


def get_content_generator(config: Settings = default_settings):
    """Build the enrichment service selected by CONTENT_PROVIDER."""
    content = config.content
    if content.provider == "gemini":
        return GeminiContentGenerator(
            api_key=content.gemini_api_key,
            model_name=content.gemini_model,
            source_lang=content.source_language,
            target_lang=content.target_language,
        )
    return ContentGenerator(
        source_lang=content.source_language,
        target_lang=content.target_language,
    )
