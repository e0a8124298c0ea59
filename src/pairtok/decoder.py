"""Turn token strings back into text."""

from collections.abc import Iterable
from typing import Final

DEFAULT_SUFFIX: Final[str] = "</w>"


class BPEDecoder:
    """
    Join sub-word tokens into text.

    The end-of-word suffix marks a word boundary and becomes a space. When a
    continuing-subword prefix is given it is removed from tokens starting
    with it.
    """

    def __init__(self, suffix: str = DEFAULT_SUFFIX, prefix: str | None = None) -> None:
        self.suffix = suffix
        self.prefix = prefix

    def decode(self, tokens: Iterable[str]) -> str:
        """Join ``tokens``, turning suffixes into spaces and trimming trailing space."""
        if self.prefix:
            n = len(self.prefix)
            tokens = (tok[n:] if tok.startswith(self.prefix) else tok for tok in tokens)
        text = "".join(tokens)
        if not self.suffix:
            return text
        return text.replace(self.suffix, " ").rstrip()
