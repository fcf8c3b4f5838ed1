#!/usr/bin/env python3
"""
Build a glyph confusion matrix from ground truth and recognizer output.

Usage:
    python scripts/build_confusion_matrix.py truth.txt ocr.txt -o confusion.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, '.')
from collation import build_confusion_matrix, glyph_error_rates
from collation.confusion import DELETE_TOKEN, INSERT_TOKEN


def main():
    parser = argparse.ArgumentParser(description='Build a glyph confusion matrix')
    parser.add_argument('truth', type=Path, help='Ground-truth text')
    parser.add_argument('observed', type=Path, help='Recognizer output for the same text')
    parser.add_argument('-o', '--output', type=Path, required=True, help='Output YAML')
    parser.add_argument('--top', type=int, default=10, help='Least reliable glyphs to print')
    parser.add_argument('--verbose', '-v', action='store_true')
    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        truth = args.truth.read_text(encoding="utf-8")
        observed = args.observed.read_text(encoding="utf-8")
    except OSError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    matrix = build_confusion_matrix(truth, observed)
    matrix.to_yaml(args.output)

    print("=== CONFUSION MATRIX ===")
    print(f"  Glyphs: {matrix.size}")
    print(f"  Written to: {args.output}")

    rates = glyph_error_rates(matrix.probabilities(), matrix.glyphs)
    rates = {g: r for g, r in rates.items() if g not in (DELETE_TOKEN, INSERT_TOKEN)}
    worst = sorted(rates.items(), key=lambda kv: -kv[1])[:args.top]
    if worst:
        print("\nLeast reliable glyphs:")
        for glyph, rate in worst:
            print(f"  {glyph!r}: error rate {rate:.3f}")


if __name__ == '__main__':
    main()
