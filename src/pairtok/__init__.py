"""pairtok: word-level Byte-Pair-Encoding tokenizer."""

from .cache import DEFAULT_CACHE_CAPACITY, Cache
from .decoder import BPEDecoder
from .errors import (
    ConfigurationError,
    ModelLoadError,
    ModelSaveError,
    PairTokError,
    TokenizationError,
    VocabularyError,
)
from .model import BPE
from .types import Token
from .vocab import MergeTable, Vocabulary
from .word import Word

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pairtok")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "BPE",
    "BPEDecoder",
    "Cache",
    "DEFAULT_CACHE_CAPACITY",
    "MergeTable",
    "Token",
    "Vocabulary",
    "Word",
    "PairTokError",
    "ModelLoadError",
    "ModelSaveError",
    "TokenizationError",
    "VocabularyError",
    "ConfigurationError",
]
