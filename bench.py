"""Benchmark word tokenization throughput on a slice of the Sci-Fi Gutenberg dataset.

Compares a cached model against one with caching disabled. The model is loaded
from an existing vocab.json / merges.txt pair.
"""

import argparse
import time

from datasets import load_dataset

from pairtok import BPE

HF_DATASET = "stevez80/Sci-Fi-Books-gutenberg"


def load_words(num_docs: int | None) -> list[str]:
    """Load up to `num_docs` documents and split them on whitespace."""
    print(f"Loading {HF_DATASET} (non-streaming) …")
    ds = load_dataset(HF_DATASET, split="train")
    docs = ds[:num_docs]["text"] if num_docs is not None else ds["text"]
    return [word for doc in docs for word in doc.split()]


def run(model: BPE, words: list[str]) -> tuple[float, int]:
    """Tokenize every word, returning elapsed seconds and token count."""
    start = time.perf_counter()
    n_tokens = 0
    for word in words:
        n_tokens += len(model.tokenize(word))
    return time.perf_counter() - start, n_tokens


def main() -> None:
    """Run the benchmark and print a small results table."""
    parser = argparse.ArgumentParser(description="Benchmark pairtok BPE.tokenize().")
    parser.add_argument("vocab", help="Path to vocab.json.")
    parser.add_argument("merges", help="Path to merges.txt.")
    parser.add_argument(
        "--num-docs",
        type=int,
        default=100,
        help="Number of documents to tokenize (default: 100).",
    )
    parser.add_argument("--unk-token", default=None, help="Unknown token, if any.")
    args = parser.parse_args()

    words = load_words(args.num_docs)
    if not words:
        raise RuntimeError("No words loaded from dataset.")

    cached = BPE.from_files(args.vocab, args.merges, unk_token=args.unk_token)
    uncached = BPE.from_files(
        args.vocab, args.merges, unk_token=args.unk_token, cache_capacity=0
    )

    print()
    print(f"| {'Mode':10} | {'Words':10} | {'Tokens':10} | {'Time':10} | {'Words/sec':14} |")
    print(f"| {'-' * 10} | {'-' * 10} | {'-' * 10} | {'-' * 10} | {'-' * 14} |")
    for name, model in (("uncached", uncached), ("cached", cached)):
        elapsed, n_tokens = run(model, words)
        print(
            f"| {name:10} | {len(words):10,} | {n_tokens:10,} "
            f"| {f'{elapsed:.2f} s':10} | {len(words) / elapsed:14,.0f} |"
        )
    print()


if __name__ == "__main__":
    main()
