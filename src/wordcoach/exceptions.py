"""Exceptions raised by wordcoach services."""


class WordCoachError(Exception):
    """Base exception for all wordcoach errors."""
    pass


class NoWordsDueError(WordCoachError):
    """Raised when a study session is started with nothing to review."""

    def __init__(self, message: str = "No words to review right now"):
        super().__init__(message)


class DuplicateError(WordCoachError):
    """Raised when a term already exists in the word store."""

    def __init__(self, term: str):
        self.term = term
        super().__init__(f"The word '{term}' is already in your library")


class GenerationError(WordCoachError):
    """Raised when word content could not be generated."""
    pass


class PersistenceError(WordCoachError):
    """Raised when the word store fails to read or write a record."""
    pass


class UnsupportedError(WordCoachError):
    """Raised when text-to-speech cannot handle a request."""
    pass


class SessionStateError(WordCoachError):
    """Raised when a study session operation is called in the wrong state."""
    pass
