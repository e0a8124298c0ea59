"""
Vocabulary and merge table for word-level BPE.

Both structures are filled once at construction and only read afterwards, so
they can be shared between threads without locking.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping

from .errors import ModelLoadError, VocabularyError
from .types import MergeValue, TokenId, TokenPair

log = logging.getLogger(__name__)

# id reserved for the unknown token
UNK_ID = 0


class Vocabulary:
    """
    Bidirectional mapping between token strings and token ids.

    The unknown token, when set, always lives at id ``0``.
    """

    def __init__(
        self, vocab: Mapping[str, TokenId] | None = None, unk_token: str | None = None
    ) -> None:
        self._token_to_id: dict[str, TokenId] = {}
        self._id_to_token: dict[TokenId, str] = {}
        self._unk_token: str | None = None

        for tok, tok_id in (vocab or {}).items():
            if tok_id in self._id_to_token:
                raise VocabularyError(
                    f"id {tok_id} is assigned to both {self._id_to_token[tok_id]!r} and {tok!r}",
                    invalid_tok=tok,
                )
            self._token_to_id[tok] = tok_id
            self._id_to_token[tok_id] = tok

        self.unk_token = unk_token

    @property
    def unk_token(self) -> str | None:
        """The token used for characters that have no vocabulary entry."""
        return self._unk_token

    @unk_token.setter
    def unk_token(self, value: str | None) -> None:
        if value is None:
            # only a registered unknown token is removed, a regular id 0 entry stays
            if self._unk_token is not None:
                del self._id_to_token[UNK_ID]
                del self._token_to_id[self._unk_token]
            self._unk_token = None
            return

        existing = self._token_to_id.get(value)
        if existing is not None and existing != UNK_ID:
            raise VocabularyError(
                f"unknown token is already registered with id {existing}",
                invalid_tok=value,
            )

        old = self._id_to_token.get(UNK_ID)
        if old is not None and old != value:
            del self._token_to_id[old]
        self._token_to_id[value] = UNK_ID
        self._id_to_token[UNK_ID] = value
        self._unk_token = value

    def token_id(self, token: str) -> TokenId | None:
        """Return the id for ``token`` or ``None`` if it is not in the vocabulary."""
        return self._token_to_id.get(token)

    def id_to_token(self, tok_id: TokenId) -> str | None:
        """Return the token string for ``tok_id`` or ``None`` if it is unknown."""
        return self._id_to_token.get(tok_id)

    def as_dict(self) -> dict[str, TokenId]:
        """Return a copy of the token -> id mapping."""
        return dict(self._token_to_id)

    def sorted_items(self) -> list[tuple[TokenId, str]]:
        """Return ``(id, token)`` pairs with non-negative ids in ascending id order."""
        return sorted(
            (tok_id, tok) for tok_id, tok in self._id_to_token.items() if tok_id >= 0
        )

    def __contains__(self, token: object) -> bool:
        return token in self._token_to_id

    def __len__(self) -> int:
        return len(self._token_to_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self._token_to_id)


class MergeTable:
    """
    Ranked merge rules: ``(left id, right id) -> (rank, merged id)``.

    Use :meth:`from_rules` to build a table checked against a vocabulary. The
    plain constructor takes resolved ids as they are and does not check that
    they exist in any vocabulary.
    """

    def __init__(self, merges: Mapping[TokenPair, MergeValue] | None = None) -> None:
        self._merges: dict[TokenPair, MergeValue] = dict(merges or {})

    @classmethod
    def from_rules(
        cls,
        vocab: Vocabulary,
        rules: Iterable[tuple[str, str]],
        continuing_subword_prefix: str | None = None,
    ) -> "MergeTable":
        """
        Resolve textual merge rules against ``vocab``.

        Each rule gets its position in ``rules`` as rank. The merged token is the
        left token with the continuing-subword prefix stripped, followed by the
        right token; the plain concatenation is used when the stripped form is
        not in the vocabulary.

        :raises ModelLoadError: If a rule names a token, or produces a target,
            that is not in the vocabulary, or if a pair is listed twice.
        """
        prefix_len = len(continuing_subword_prefix) if continuing_subword_prefix else 0
        merges: dict[TokenPair, MergeValue] = {}

        for rank, (left, right) in enumerate(rules):
            left_id = vocab.token_id(left)
            if left_id is None:
                raise ModelLoadError(
                    f"trying to merge a token {left!r} which does not exist in the vocabulary"
                )
            right_id = vocab.token_id(right)
            if right_id is None:
                raise ModelLoadError(
                    f"trying to merge a token {right!r} which does not exist in the vocabulary"
                )

            first = left
            if prefix_len and left.startswith(continuing_subword_prefix):
                first = left[prefix_len:]
            new_id = vocab.token_id(first + right)
            if new_id is None:
                new_id = vocab.token_id(left + right)
                if new_id is None:
                    raise ModelLoadError(
                        f"merge target {first + right!r} not in vocabulary"
                    )

            pair = (left_id, right_id)
            if pair in merges:
                raise ModelLoadError(f"duplicate merge rule {left!r} {right!r}")
            merges[pair] = (rank, new_id)

        log.debug(f"resolved {len(merges)} merge rules")
        return cls(merges)

    def get(self, pair: TokenPair) -> MergeValue | None:
        """Return ``(rank, merged id)`` for ``pair`` or ``None``."""
        return self._merges.get(pair)

    def ranked_pairs(self) -> list[TokenPair]:
        """Return all pairs in ascending rank order."""
        return [pair for pair, _ in sorted(self._merges.items(), key=lambda x: x[1][0])]

    def uses_id(self, tok_id: TokenId) -> bool:
        """Return whether any rule has ``tok_id`` as left, right or merged id."""
        return any(
            tok_id in pair or value[1] == tok_id for pair, value in self._merges.items()
        )

    def __contains__(self, pair: object) -> bool:
        return pair in self._merges

    def __len__(self) -> int:
        return len(self._merges)
