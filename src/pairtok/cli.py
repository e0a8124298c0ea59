"""Command line entry point: tokenize words with a saved model."""

import argparse
import logging
import random
import sys

from .errors import PairTokError
from .model import BPE


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for ``python -m pairtok``."""
    parser = argparse.ArgumentParser(
        prog="pairtok",
        description="Tokenize words with a BPE vocabulary and merges file.",
    )
    parser.add_argument("vocab", help="Path to the vocab.json file.")
    parser.add_argument("words", nargs="+", help="Pre-segmented words to tokenize.")
    parser.add_argument(
        "--merges", default=None, help="Path to the merges.txt file (default: no merges)."
    )
    parser.add_argument("--unk-token", default=None, help="Unknown token registered at id 0.")
    parser.add_argument(
        "--prefix", default=None, help="Continuing-subword prefix, e.g. '##'."
    )
    parser.add_argument("--suffix", default=None, help="End-of-word suffix, e.g. '</w>'.")
    parser.add_argument(
        "--fuse-unk",
        action="store_true",
        help="Collapse consecutive unknown characters into one token.",
    )
    parser.add_argument(
        "--dropout", type=float, default=None, help="Merge dropout probability in [0, 1]."
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Seed for the dropout random source."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        model = BPE.from_files(
            args.vocab,
            args.merges,
            unk_token=args.unk_token,
            continuing_subword_prefix=args.prefix,
            end_of_word_suffix=args.suffix,
            fuse_unk=args.fuse_unk,
            dropout=args.dropout,
            rng=random.Random(args.seed),
        )
        for word in args.words:
            tokens = model.tokenize(word)
            print(
                " ".join(
                    f"{tok.id}\t{tok.value}\t{tok.offsets[0]}:{tok.offsets[1]}"
                    for tok in tokens
                )
            )
    except PairTokError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0
