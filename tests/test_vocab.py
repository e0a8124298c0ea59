"""Unit tests for the vocabulary and merge table."""

import pytest

from pairtok.errors import ModelLoadError, VocabularyError
from pairtok.vocab import UNK_ID, MergeTable, Vocabulary


# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def vocab():
    """Return a small vocabulary without an unknown token."""
    return Vocabulary({"a": 1, "b": 2, "c": 3, "ab": 4, "abc": 5})


# Vocabulary lookups
# ---------------------------------------------------------------------------


def test_lookup_both_directions(vocab):
    """Tokens and ids resolve to each other."""
    assert vocab.token_id("ab") == 4
    assert vocab.id_to_token(4) == "ab"
    assert len(vocab) == 5


def test_missing_lookups_return_none(vocab):
    """Unknown tokens and ids resolve to None."""
    assert vocab.token_id("zz") is None
    assert vocab.id_to_token(99) is None


def test_duplicate_ids_rejected():
    """Two tokens may not share an id."""
    with pytest.raises(VocabularyError):
        Vocabulary({"a": 1, "b": 1})


def test_sorted_items_skips_negative_ids():
    """Only non-negative ids are listed, in ascending order."""
    vocab = Vocabulary({"z": 3, "neg": -1, "y": 0, "x": 7})
    assert vocab.sorted_items() == [(0, "y"), (3, "z"), (7, "x")]


# Unknown token
# ---------------------------------------------------------------------------


def test_unk_token_registered_at_id_zero(vocab):
    """Setting the unknown token adds it at the reserved id in both maps."""
    vocab.unk_token = "<unk>"
    assert vocab.token_id("<unk>") == UNK_ID
    assert vocab.id_to_token(UNK_ID) == "<unk>"
    assert len(vocab) == 6


def test_unk_token_cleared_from_both_maps(vocab):
    """Clearing the unknown token removes it from both maps."""
    vocab.unk_token = "<unk>"
    vocab.unk_token = None
    assert vocab.token_id("<unk>") is None
    assert vocab.id_to_token(UNK_ID) is None
    assert len(vocab) == 5


def test_clearing_keeps_regular_id_zero_entry():
    """A regular token at id 0 survives when no unknown token was set."""
    vocab = Vocabulary({"!": 0, "a": 1})
    vocab.unk_token = None
    assert vocab.token_id("!") == 0


def test_unk_token_replacement(vocab):
    """Replacing the unknown token drops the previous one."""
    vocab.unk_token = "<unk>"
    vocab.unk_token = "[UNK]"
    assert vocab.token_id("<unk>") is None
    assert vocab.id_to_token(UNK_ID) == "[UNK]"


def test_unk_token_already_present_at_other_id(vocab):
    """A token with a non-zero id cannot become the unknown token."""
    with pytest.raises(VocabularyError):
        vocab.unk_token = "ab"


def test_unk_token_given_in_vocab():
    """An unknown token already stored at id 0 is accepted."""
    vocab = Vocabulary({"<unk>": 0, "a": 1}, unk_token="<unk>")
    assert vocab.unk_token == "<unk>"
    assert len(vocab) == 2


# Merge table
# ---------------------------------------------------------------------------


def test_ranks_follow_rule_order(vocab):
    """Each rule is ranked by its position and maps to the merged id."""
    merges = MergeTable.from_rules(vocab, [("a", "b"), ("ab", "c")])
    assert merges.get((1, 2)) == (0, 4)
    assert merges.get((4, 3)) == (1, 5)
    assert (1, 3) not in merges
    assert len(merges) == 2


def test_ranked_pairs_in_rank_order():
    """Pairs are listed from highest to lowest priority."""
    merges = MergeTable({(4, 3): (1, 5), (1, 2): (0, 4), (7, 8): (2, 9)})
    assert merges.ranked_pairs() == [(1, 2), (4, 3), (7, 8)]


def test_prefix_stripped_from_left_token():
    """The continuing prefix of the left token is dropped in the merge target."""
    vocab = Vocabulary({"##a": 1, "b": 2, "ab": 3})
    merges = MergeTable.from_rules(vocab, [("##a", "b")], continuing_subword_prefix="##")
    assert merges.get((1, 2)) == (0, 3)


def test_plain_concatenation_fallback():
    """Without a stripped target the plain concatenation is used."""
    vocab = Vocabulary({"##x": 1, "y": 2, "##xy": 3})
    merges = MergeTable.from_rules(vocab, [("##x", "y")], continuing_subword_prefix="##")
    assert merges.get((1, 2)) == (0, 3)


def test_rule_with_unknown_token(vocab):
    """Rules naming tokens outside the vocabulary fail to load."""
    with pytest.raises(ModelLoadError, match="does not exist"):
        MergeTable.from_rules(vocab, [("a", "zz")])


def test_rule_with_missing_target(vocab):
    """Rules whose merged token is not in the vocabulary fail to load."""
    with pytest.raises(ModelLoadError, match="not in vocabulary"):
        MergeTable.from_rules(vocab, [("b", "c")])


def test_duplicate_rule(vocab):
    """A pair can only be listed once."""
    with pytest.raises(ModelLoadError, match="duplicate"):
        MergeTable.from_rules(vocab, [("a", "b"), ("a", "b")])


def test_uses_id_checks_all_rule_positions(vocab):
    """An id counts as used as left, right or merged token of any rule."""
    merges = MergeTable.from_rules(vocab, [("a", "b")])
    assert merges.uses_id(1)
    assert merges.uses_id(2)
    assert merges.uses_id(4)
    assert not merges.uses_id(3)
    assert not MergeTable().uses_id(UNK_ID)


def test_plain_constructor_takes_ids_unchecked():
    """Resolved ids are stored as given, whether or not a vocabulary holds them."""
    merges = MergeTable({(98, 99): (0, 100)})
    assert merges.get((98, 99)) == (0, 100)
    assert merges.ranked_pairs() == [(98, 99)]
