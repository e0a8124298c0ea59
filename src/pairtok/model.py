"""
Word-level Byte-Pair-Encoding model.

:class:`BPE` turns one pre-segmented word into sub-word tokens using a fixed
vocabulary and ranked merge rules. Instances are safe to share between
threads: the vocabulary and merges are only read, and finished words are
memoised in a :class:`~pairtok.cache.Cache` guarded by a reader/writer lock.
"""

import logging
import random
from collections.abc import Iterable, Mapping
from pathlib import Path

import regex as re

from ._decorators import measure_time
from ._files import (
    MERGES_FILENAME,
    VOCAB_FILENAME,
    read_merges,
    read_vocab,
    write_merges,
    write_vocab,
)
from .cache import DEFAULT_CACHE_CAPACITY, Cache
from .decoder import BPEDecoder
from .errors import ConfigurationError, TokenizationError, VocabularyError
from .types import Token, TokenId
from .vocab import UNK_ID, MergeTable, Vocabulary
from .word import Word

log = logging.getLogger(__name__)

# a surrogate pair counts as one character of length 2, anything else is one code point
_CHAR_PAT = re.compile(r"[\ud800-\udbff][\udc00-\udfff]|.", re.DOTALL)


class BPE:
    """
    Byte-Pair-Encoding tokenizer model.

    :param vocab: Mapping of token string to id.
    :param merges: Merge rules as ``(left, right)`` token strings in priority order.
    :param unk_token: Token emitted for characters missing from the vocabulary.
        It is registered at id ``0``. When omitted, a token already stored at
        id ``0`` is used.
    :param continuing_subword_prefix: Prefix for characters that do not start the word.
    :param end_of_word_suffix: Suffix for the last character of the word.
    :param fuse_unk: Collapse consecutive unknown characters into one token.
    :param dropout: Probability in ``[0, 1]`` of skipping a merge, or ``None``.
    :param cache_capacity: Maximum number of cached words; ``0`` disables caching.
    :param rng: Random source for dropout; a private one is created when omitted.
    :raises ModelLoadError: If a merge rule cannot be resolved against the vocabulary.
    :raises ConfigurationError: If ``dropout`` or ``cache_capacity`` is out of range.
    """

    def __init__(
        self,
        vocab: Mapping[str, TokenId] | None = None,
        merges: Iterable[tuple[str, str]] | None = None,
        *,
        unk_token: str | None = None,
        continuing_subword_prefix: str | None = None,
        end_of_word_suffix: str | None = None,
        fuse_unk: bool = False,
        dropout: float | None = None,
        cache_capacity: int = DEFAULT_CACHE_CAPACITY,
        rng: random.Random | None = None,
    ) -> None:
        if cache_capacity < 0:
            raise ConfigurationError(
                "cache capacity must not be negative",
                name="cache_capacity",
                value=cache_capacity,
            )

        self.continuing_subword_prefix = continuing_subword_prefix
        self.end_of_word_suffix = end_of_word_suffix
        self._fuse_unk = fuse_unk
        self._dropout = _check_dropout(dropout)
        self._rng = rng if rng is not None else random.Random()
        self._cache: Cache[str, Word] | None = (
            Cache(cache_capacity) if cache_capacity > 0 else None
        )

        self.vocab = Vocabulary(vocab)
        self.merges = MergeTable()
        if unk_token is None:
            # a token stored at the reserved id doubles as the unknown token
            unk_token = self.vocab.id_to_token(UNK_ID)
        self.unk_token = unk_token
        self.merges = MergeTable.from_rules(
            self.vocab, merges or [], continuing_subword_prefix
        )

        log.debug(
            f"bpe model ready: {len(self.vocab)} tokens, {len(self.merges)} merge rules"
        )

    @classmethod
    @measure_time("model loading")
    def from_files(
        cls,
        vocab_file: str | Path,
        merges_file: str | Path | None = None,
        **kwargs,
    ) -> "BPE":
        """
        Load a model from a ``vocab.json`` file and an optional ``merges.txt`` file.

        Keyword arguments are passed on to the constructor.

        :raises ModelLoadError: If either file is unreadable or malformed.
        """
        log.info(f"loading bpe model from {vocab_file}")
        vocab = read_vocab(vocab_file)
        merges = read_merges(merges_file)
        return cls(vocab, merges, **kwargs)

    # configuration
    # ---------------------------------------------------------------------------

    @property
    def unk_token(self) -> str | None:
        """
        The unknown token, stored at id ``0``.

        Assigning a new value or ``None`` raises :class:`VocabularyError` when a
        different token holds id ``0`` and a merge rule uses it.
        """
        return self.vocab.unk_token

    @unk_token.setter
    def unk_token(self, value: str | None) -> None:
        displaced = self.vocab.id_to_token(UNK_ID)
        if displaced is not None and displaced != value:
            if self.merges.uses_id(UNK_ID):
                raise VocabularyError(
                    f"cannot replace {displaced!r} at id {UNK_ID}, merge rules use it",
                    invalid_tok=value,
                )
            if displaced != self.vocab.unk_token and value is not None:
                log.warning(
                    f"unknown token {value!r} replaces {displaced!r} at id {UNK_ID}"
                )
        self.vocab.unk_token = value
        self.clear_cache()

    @property
    def fuse_unk(self) -> bool:
        return self._fuse_unk

    @fuse_unk.setter
    def fuse_unk(self, value: bool) -> None:
        self._fuse_unk = value
        self.clear_cache()

    @property
    def dropout(self) -> float | None:
        return self._dropout

    @dropout.setter
    def dropout(self, value: float | None) -> None:
        self._dropout = _check_dropout(value)

    # tokenization
    # ---------------------------------------------------------------------------

    def tokenize(self, word: str) -> list[Token]:
        """
        Split ``word`` into sub-word tokens.

        Results are cached per word while dropout is disabled.

        :raises TokenizationError: If a character has no vocabulary entry and no
            unknown token is configured.
        """
        if not word:
            return []

        if self._dropout is not None or self._cache is None:
            return self._merge_word(word).to_tokens(self.vocab)

        hit = self._cache.get(word)
        if hit is not None:
            return hit.to_tokens(self.vocab)

        merged = self._merge_word(word)
        tokens = merged.to_tokens(self.vocab)
        self._cache.set(word, merged)
        return tokens

    def _merge_word(self, word: str) -> Word:
        """Build the initial symbols for ``word`` and run all merges on them."""
        prefix = self.continuing_subword_prefix
        suffix = self.end_of_word_suffix
        unk_token = self.vocab.unk_token

        result = Word()
        # pending unknown run as (id, length)
        unk: tuple[TokenId, int] | None = None

        for m in _CHAR_PAT.finditer(word):
            piece = m.group()
            length = len(piece)

            if m.start() > 0 and prefix is not None:
                piece = prefix + piece
            if m.end() >= len(word) and suffix is not None:
                piece = piece + suffix

            tok_id = self.vocab.token_id(piece)
            if tok_id is not None:
                if unk is not None:
                    result.add(*unk)
                    unk = None
                result.add(tok_id, length)
            elif unk_token is not None:
                if unk is not None and self._fuse_unk:
                    unk = (unk[0], unk[1] + length)
                else:
                    if unk is not None:
                        result.add(*unk)
                    unk = (UNK_ID, length)
            else:
                raise TokenizationError(
                    f"token {piece!r} not representable and no unknown token is set",
                    position=m.start(),
                    input_text=word,
                )

        if unk is not None:
            result.add(*unk)

        result.merge_all(self.merges, self._dropout, self._rng)
        return result

    def decode(self, ids: Iterable[TokenId]) -> str:
        """
        Turn token ids back into text.

        :raises VocabularyError: If an id is not in the vocabulary.
        """
        tokens: list[str] = []
        for tok_id in ids:
            tok = self.vocab.id_to_token(tok_id)
            if tok is None:
                raise VocabularyError("token not found in vocabulary", invalid_tok=tok_id)
            tokens.append(tok)

        decoder = BPEDecoder(
            suffix=self.end_of_word_suffix or "", prefix=self.continuing_subword_prefix
        )
        return decoder.decode(tokens)

    # vocabulary access
    # ---------------------------------------------------------------------------

    def token_to_id(self, token: str) -> TokenId | None:
        """Return the id of ``token`` or ``None``."""
        return self.vocab.token_id(token)

    def id_to_token(self, tok_id: TokenId) -> str | None:
        """Return the token string of ``tok_id`` or ``None``."""
        return self.vocab.id_to_token(tok_id)

    def get_vocab(self) -> dict[str, TokenId]:
        """Return a copy of the token -> id mapping."""
        return self.vocab.as_dict()

    def vocab_size(self) -> int:
        """Return the number of tokens in the vocabulary."""
        return len(self.vocab)

    # persistence
    # ---------------------------------------------------------------------------

    def save(self, directory: str | Path, prefix: str | None = None) -> tuple[Path, Path]:
        """
        Write ``vocab.json`` and ``merges.txt`` into ``directory``.

        With a ``prefix`` the files are named ``{prefix}-vocab.json`` and
        ``{prefix}-merges.txt``.

        :returns: Paths of the vocabulary file and the merges file.
        """
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)

        vocab_name = VOCAB_FILENAME if prefix is None else f"{prefix}-{VOCAB_FILENAME}"
        merges_name = MERGES_FILENAME if prefix is None else f"{prefix}-{MERGES_FILENAME}"
        vocab_path = out_dir / vocab_name
        merges_path = out_dir / merges_name

        log.info(f"saving bpe model to {out_dir}")
        write_vocab(vocab_path, self.vocab)
        write_merges(merges_path, self.vocab, self.merges)
        log.info("bpe model saved successfully")

        return vocab_path, merges_path

    def clear_cache(self) -> None:
        """Drop every cached word."""
        if self._cache is not None:
            self._cache.clear()


def _check_dropout(dropout: float | None) -> float | None:
    """Validate a dropout probability."""
    if dropout is not None and not 0.0 <= dropout <= 1.0:
        raise ConfigurationError(
            "dropout must be between 0 and 1", name="dropout", value=dropout
        )
    return dropout
