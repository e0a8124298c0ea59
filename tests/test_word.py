"""Unit tests for the symbol sequence and the greedy merge engine."""

import random

import pytest

from pairtok.errors import VocabularyError
from pairtok.vocab import MergeTable, Vocabulary
from pairtok.word import Merge, Word


class SequenceRandom(random.Random):
    """Random source returning a fixed sequence of draws."""

    def __init__(self, values: list[float]) -> None:
        super().__init__(0)
        self._values = iter(values)

    def random(self) -> float:
        return next(self._values)


def make_word(*ids: int) -> Word:
    """Build a word of single-character symbols."""
    word = Word()
    for tok_id in ids:
        word.add(tok_id, 1)
    return word


# Fixtures
# ---------------------------------------------------------------------------

# a=1 b=2 c=3 ab=4 abc=5 bc=6 aa=7


@pytest.fixture
def vocab():
    """Return the vocabulary shared by the merge tests."""
    return Vocabulary({"a": 1, "b": 2, "c": 3, "ab": 4, "abc": 5, "bc": 6, "aa": 7})


@pytest.fixture
def chained_merges():
    """(a, b) fires first and enables (ab, c)."""
    return MergeTable({(1, 2): (0, 4), (4, 3): (1, 5)})


@pytest.fixture
def competing_merges():
    """(a, b) outranks (b, c); both compete for b."""
    return MergeTable({(1, 2): (0, 4), (2, 3): (1, 6)})


# Building words
# ---------------------------------------------------------------------------


def test_add_links_neighbours():
    """Appended symbols are linked by index."""
    word = make_word(1, 2, 3)
    symbols = word._symbols
    assert [(s.prev, s.next) for s in symbols] == [(-1, 1), (0, 2), (1, -1)]
    assert len(word) == 3
    assert str(word) == "[1, 2, 3]"


def test_merge_candidates_order_by_rank_then_position():
    """Lower rank wins and ties go to the leftmost position."""
    candidates = sorted([Merge(1, 0, 9), Merge(0, 5, 9), Merge(0, 2, 8)])
    assert [(m.rank, m.pos) for m in candidates] == [(0, 2), (0, 5), (1, 0)]


# Merging
# ---------------------------------------------------------------------------


def test_chained_merges(chained_merges):
    """A merge can create the pair for the next ranked merge."""
    word = make_word(1, 2, 3)
    word.merge_all(chained_merges)
    assert word.ids() == [5]
    assert len(word) == 1


def test_leftmost_pair_wins_on_rank_tie():
    """For 'aaa' the left pair merges and the leftover 'a' stays separate."""
    word = make_word(1, 1, 1)
    word.merge_all(MergeTable({(1, 1): (0, 7)}))
    assert word.ids() == [7, 1]


def test_repeated_pairs_merge_independently():
    """For 'aaaa' both pairs merge."""
    word = make_word(1, 1, 1, 1)
    word.merge_all(MergeTable({(1, 1): (0, 7)}))
    assert word.ids() == [7, 7]


def test_stale_candidate_discarded(vocab):
    """A candidate whose pair was consumed by a better merge has no effect."""
    # (b, c) outranks (a, b) here
    merges = MergeTable({(2, 3): (0, 6), (1, 2): (1, 4)})
    word = make_word(1, 2, 3)
    word.merge_all(merges)
    assert word.ids() == [1, 6]


def test_no_merges_leaves_word_unchanged():
    """Without matching rules the word is left as is."""
    word = make_word(3, 2, 1)
    word.merge_all(MergeTable())
    assert word.ids() == [3, 2, 1]


def test_compaction_relinks_symbols(chained_merges):
    """After merging only live symbols remain and links are contiguous."""
    word = make_word(3, 1, 2, 3, 3)
    word.merge_all(chained_merges)
    assert word.ids() == [3, 5, 3]
    symbols = word._symbols
    assert all(s.length > 0 for s in symbols)
    assert [(s.prev, s.next) for s in symbols] == [(-1, 1), (0, 2), (1, -1)]
    assert [s.length for s in symbols] == [1, 3, 1]


# Dropout
# ---------------------------------------------------------------------------


def test_full_dropout_never_merges(chained_merges):
    """With dropout 1.0 every candidate is skipped."""
    word = make_word(1, 2, 3)
    word.merge_all(chained_merges, dropout=1.0, rng=random.Random(7))
    assert word.ids() == [1, 2, 3]


def test_zero_dropout_matches_plain_merge(chained_merges):
    """With dropout 0.0 the result equals merging without dropout."""
    plain = make_word(1, 2, 3, 1, 2)
    plain.merge_all(chained_merges)
    for seed in range(5):
        word = make_word(1, 2, 3, 1, 2)
        word.merge_all(chained_merges, dropout=0.0, rng=random.Random(seed))
        assert word.ids() == plain.ids()


def test_skipped_candidate_is_requeued(competing_merges):
    """A skipped merge returns to the queue once another merge applies."""
    plain = make_word(1, 2, 3)
    plain.merge_all(competing_merges)
    assert plain.ids() == [4, 3]

    # skip (a, b), accept (b, c), then the requeued (a, b) is stale
    word = make_word(1, 2, 3)
    word.merge_all(competing_merges, dropout=0.5, rng=SequenceRandom([0.1, 0.9, 0.9]))
    assert word.ids() == [1, 6]


def test_requeued_candidate_can_still_apply():
    """A skipped merge that is still valid applies on its second chance."""
    # a=1 b=2 c=3, rules (a, b)->ab rank 0 and (c, c)->cc rank 1
    merges = MergeTable({(1, 2): (0, 4), (3, 3): (1, 8)})
    word = make_word(1, 2, 3, 3)
    word.merge_all(merges, dropout=0.5, rng=SequenceRandom([0.1, 0.9, 0.9]))
    assert word.ids() == [4, 8]


# Rendering
# ---------------------------------------------------------------------------


def test_to_tokens_offsets(vocab, chained_merges):
    """Tokens carry contiguous half-open character spans."""
    word = make_word(1, 2, 3, 1)
    word.merge_all(chained_merges)
    tokens = word.to_tokens(vocab)
    assert [(t.id, t.value, t.offsets) for t in tokens] == [
        (5, "abc", (0, 3)),
        (1, "a", (3, 4)),
    ]


def test_to_tokens_unknown_id(vocab):
    """A symbol id without a vocabulary entry is a configuration error."""
    word = make_word(1, 42)
    with pytest.raises(VocabularyError):
        word.to_tokens(vocab)


def test_empty_word():
    """An empty word merges to nothing and renders no tokens."""
    word = Word()
    word.merge_all(MergeTable({(1, 2): (0, 4)}))
    assert word.ids() == []
    assert word.to_tokens(Vocabulary({"a": 1})) == []
