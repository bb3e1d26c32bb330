"""Text-to-speech for pronouncing words."""
import hashlib
import logging
import os
import re
import unicodedata
from pathlib import Path
from typing import Optional

from gtts import gTTS, gTTSError
from gtts.lang import tts_langs

from wordcoach.config import settings
from wordcoach.exceptions import UnsupportedError

logger = logging.getLogger(__name__)


def sanitize_filename(text: str) -> str:
    """Sanitize text for use in a filename."""
    text = unicodedata.normalize("NFD", text.strip().lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    # Replace any non-alphanumeric characters with underscore
    return re.sub(r"[^a-z0-9]", "_", text)


class SpeechService:
    """Synthesize pronunciations as mp3 files."""

    def __init__(
        self,
        output_dir: Optional[Path] = None,
        lang: Optional[str] = None,
        tld: Optional[str] = None,
        slow: Optional[bool] = None,
    ):
        self.output_dir = Path(output_dir or settings.paths.pronunciations_dir)
        self.lang = lang or settings.speech.language
        self.tld = tld or settings.speech.tld
        self.slow = settings.speech.slow if slow is None else slow

    def is_supported(self) -> bool:
        """Check whether gTTS can speak the configured language."""
        return self.lang in tts_langs()

    def path_for(self, text: str) -> Path:
        """Get the file a pronunciation of text is cached in."""
        # The digest keeps "café" and "cafè" apart
        digest = hashlib.sha1(text.strip().lower().encode("utf-8")).hexdigest()[:8]
        return self.output_dir / f"{sanitize_filename(text)}_{digest}_{self.lang}.mp3"

    def speak(self, text: str) -> Path:
        """Synthesize text and return the path of the audio file."""
        if not text or not text.strip():
            raise UnsupportedError("Nothing to pronounce")
        if not self.is_supported():
            raise UnsupportedError(f"Speech is not available for language '{self.lang}'")

        path = self.path_for(text)
        if path.exists() and path.stat().st_size > 0:
            return path

        self.output_dir.mkdir(parents=True, exist_ok=True)
        try:
            tts = gTTS(text=text, lang=self.lang, tld=self.tld, slow=self.slow)
            tts.save(str(path))
        except (gTTSError, ValueError) as e:
            # gTTS opens the file before requesting audio
            path.unlink(missing_ok=True)
            logger.error(f"Error generating pronunciation for: {text}, error: {e}")
            raise UnsupportedError(f"Could not pronounce '{text}': {e}") from e

        logger.info(f"Pronunciation generated for: {text}, file: {path}")
        return path

    @staticmethod
    def delete(file_path: Path) -> None:
        """Delete a pronunciation file."""
        if os.path.exists(file_path):
            os.remove(file_path)
