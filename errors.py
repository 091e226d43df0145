# --- errors.py ---


class EngineError(Exception):
    """Base class for everything the move engine raises on purpose."""


class ConfigurationError(EngineError, ValueError):
    """Malformed layout, dictionary or letter-value table."""


class OutOfBounds(EngineError):
    """A move would run past the edge of the board."""


class IllegalPlacement(EngineError):
    """A move contradicts the board or forms a word not in the dictionary."""


class UnknownLetter(EngineError, KeyError):
    """A letter being scored has no entry in the letter-value table."""

    def __init__(self, letter):
        super().__init__(letter)
        self.letter = letter

    def __str__(self):
        return f"no point value for letter {self.letter!r}"
