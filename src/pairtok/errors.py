"""Custom exception hierarchy for pairtok errors."""

from .types import TokenId


class PairTokError(Exception):
    """Base exception for all pairtok errors."""


class ModelLoadError(PairTokError):
    """Raised when loading vocabulary or merge files fails."""

    def __init__(
        self,
        message: str,
        *,
        model_path: str | None = None,
        line_number: int | None = None,
    ) -> None:
        extra = " "
        if model_path:
            extra += f"(path: {model_path}) "
        if line_number is not None:
            extra += f"(line: {line_number}) "
        super().__init__(message + extra)
        self.model_path = model_path
        self.line_number = line_number


class ModelSaveError(PairTokError):
    """Raised when vocabulary or merge files cannot be written."""

    def __init__(self, message: str, *, model_path: str | None = None) -> None:
        extra = " "
        if model_path:
            extra += f"(path: {model_path}) "
        super().__init__(message + extra)
        self.model_path = model_path


class TokenizationError(PairTokError):
    """Raised when a word cannot be tokenized."""

    def __init__(
        self,
        message: str,
        *,
        position: int | None = None,
        input_text: str | None = None,
    ) -> None:
        extra = " "
        if position is not None:
            extra += f"(position: {position}) "
        if input_text is not None:
            extra += f"(input: {input_text!r}) "
        super().__init__(message + extra)
        self.position = position
        self.input_text = input_text


class VocabularyError(PairTokError):
    """Raised when vocabulary operations fail."""

    def __init__(
        self,
        message: str,
        *,
        invalid_tok: TokenId | str | None = None,
    ) -> None:
        """Initialize with an optional offending token that gets appended to the message."""
        extra = " "
        if invalid_tok is not None:
            extra += f"(invalid token: {invalid_tok!r}) "
        super().__init__(message + extra)
        self.invalid_tok = invalid_tok


class ConfigurationError(PairTokError):
    """Raised when a tokenizer setting is out of range."""

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        value: object = None,
    ) -> None:
        extra = " "
        if name:
            extra += f"({name}: {value!r}) "
        super().__init__(message + extra)
        self.name = name
        self.value = value
