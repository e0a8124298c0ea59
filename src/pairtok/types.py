"""
Core types for word-level BPE tokenization.
"""

from dataclasses import dataclass
from typing import TypeAlias

TokenId: TypeAlias = int
TokenPair: TypeAlias = tuple[TokenId, TokenId]
# merge rank -> id the pair collapses into
MergeValue: TypeAlias = tuple[int, TokenId]
Offsets: TypeAlias = tuple[int, int]


@dataclass(frozen=True, slots=True)
class Token:
    """One sub-word token produced by tokenization."""

    id: TokenId
    value: str
    # half-open character span in the input word
    offsets: Offsets
