"""
Symbol sequence and greedy merge engine.

A :class:`Word` keeps its symbols in a flat list and links neighbours by list
index. Merging never shifts elements: the absorbed right-hand symbol is
tombstoned (``length == 0``) and all tombstones are dropped in one compaction
pass once no merge applies anymore.
"""

import heapq
import random
from collections.abc import Iterator
from dataclasses import dataclass, field

from .errors import VocabularyError
from .types import Token, TokenId
from .vocab import MergeTable, Vocabulary


@dataclass(slots=True)
class Symbol:
    """One unit of a word being merged."""

    id: TokenId
    prev: int
    next: int
    # number of input characters covered; 0 marks a removed symbol
    length: int

    def merge_with(self, other: "Symbol", new_id: TokenId) -> None:
        """Absorb ``other``, which must be the symbol directly to the right."""
        self.id = new_id
        self.length += other.length
        self.next = other.next


@dataclass(order=True, slots=True)
class Merge:
    """A merge candidate; lower rank wins, then lower position."""

    rank: int
    pos: int
    new_id: TokenId = field(compare=False)


class Word:
    """A word as a sequence of symbols linked by index."""

    def __init__(self) -> None:
        self._symbols: list[Symbol] = []

    def add(self, tok_id: TokenId, length: int) -> None:
        """Append a symbol covering ``length`` characters."""
        prev = -1
        n = len(self._symbols)
        if n > 0:
            self._symbols[n - 1].next = n
            prev = n - 1
        self._symbols.append(Symbol(tok_id, prev, -1, length))

    def merge_all(
        self,
        merges: MergeTable,
        dropout: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Apply merges greedily by rank until none is left.

        Candidates live in a min-heap keyed by ``(rank, position)``. A popped
        candidate is checked against the current symbols before it is applied
        and silently dropped when an earlier merge made it stale.

        With ``dropout`` set, each popped candidate is skipped with that
        probability. Skipped candidates are pushed back onto the heap as soon
        as some other candidate is about to be applied, so ``dropout=1.0``
        leaves the word unmerged.

        :param merges: Ranked merge rules.
        :param dropout: Probability in ``[0, 1]`` of skipping a candidate.
        :param rng: Source of randomness for dropout draws.
        """
        symbols = self._symbols
        if dropout is not None and rng is None:
            rng = random.Random()

        queue: list[Merge] = []
        for i in range(len(symbols) - 1):
            value = merges.get((symbols[i].id, symbols[i + 1].id))
            if value is not None:
                queue.append(Merge(value[0], i, value[1]))
        heapq.heapify(queue)

        skip: list[Merge] = []
        while queue:
            top = heapq.heappop(queue)
            if dropout is not None and rng.random() < dropout:
                skip.append(top)
                continue

            # give every skipped candidate another chance
            for merge in skip:
                heapq.heappush(queue, merge)
            skip.clear()

            current = symbols[top.pos]
            # removed, or last symbol of the word
            if current.length == 0 or current.next == -1:
                continue

            next_pos = current.next
            right = symbols[next_pos]

            # expired entry: the pair changed since it was queued
            value = merges.get((current.id, right.id))
            if value is None or value[1] != top.new_id:
                continue

            current.merge_with(right, top.new_id)
            right.length = 0

            if right.next != -1:
                symbols[right.next].prev = top.pos

            # new pair with the previous symbol
            if current.prev != -1:
                value = merges.get((symbols[current.prev].id, current.id))
                if value is not None:
                    heapq.heappush(queue, Merge(value[0], current.prev, value[1]))

            # new pair with the next symbol
            if current.next != -1:
                value = merges.get((current.id, symbols[current.next].id))
                if value is not None:
                    heapq.heappush(queue, Merge(value[0], top.pos, value[1]))

        self._compact()

    def _compact(self) -> None:
        """Drop removed symbols and rewrite links to the new positions."""
        live = [s for s in self._symbols if s.length != 0]
        last = len(live) - 1
        for i, symbol in enumerate(live):
            symbol.prev = i - 1
            symbol.next = i + 1 if i < last else -1
        self._symbols = live

    def ids(self) -> list[TokenId]:
        """Return the current symbol ids in link order."""
        return [symbol.id for symbol in self._iter_linked()]

    def to_tokens(self, vocab: Vocabulary) -> list[Token]:
        """
        Render the word as tokens with character offsets.

        :raises VocabularyError: If a symbol id has no vocabulary entry.
        """
        tokens: list[Token] = []
        pos = 0
        for symbol in self._iter_linked():
            value = vocab.id_to_token(symbol.id)
            if value is None:
                raise VocabularyError(
                    "merged id missing from vocabulary", invalid_tok=symbol.id
                )
            tokens.append(Token(symbol.id, value, (pos, pos + symbol.length)))
            pos += symbol.length
        return tokens

    def _iter_linked(self) -> Iterator[Symbol]:
        """Walk live symbols from the head of the list following ``next``."""
        symbols = self._symbols
        i = next((i for i, s in enumerate(symbols) if s.length != 0 and s.prev == -1), -1)
        while i != -1:
            symbol = symbols[i]
            yield symbol
            i = symbol.next

    def __len__(self) -> int:
        return len(self._symbols)

    def __str__(self) -> str:
        return "[" + ", ".join(str(symbol.id) for symbol in self._symbols) + "]"
