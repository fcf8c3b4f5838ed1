#!/usr/bin/env python3
"""
Compare two transcriptions.

Prints the edit script, the similarity report and the variant tallies.

Usage:
    python scripts/compare_texts.py ocr.txt reference.txt
    python scripts/compare_texts.py a.txt b.txt --granularity character --confusion-matrix cm.yaml
    python scripts/compare_texts.py a.txt b.txt --fold-ligatures --fold-archaic-letters --ignore-case
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, '.')
from collation import (
    ComparisonResult,
    ConfusionMatrix,
    Granularity,
    NormalizationOptions,
    compare_texts,
    default_config,
    load_config,
)
from collation.errors import CollationError


def build_options(args, base: NormalizationOptions) -> NormalizationOptions:
    """Command-line flags switch options on; they never switch a config option off."""
    values = base.to_dict()
    flags = {
        "fold_logograms": args.fold_logograms,
        "fold_ligatures": args.fold_ligatures,
        "fold_archaic_letters": args.fold_archaic_letters,
        "normalize_uvw": args.normalize_uvw,
        "fold_u_to_v": args.fold_u_to_v,
        "fold_j_to_i": args.fold_j_to_i,
        "keep_whitespace": args.keep_whitespace,
        "collapse_whitespace": args.collapse_whitespace,
    }
    for name, enabled in flags.items():
        if enabled:
            values[name] = True
    if args.ignore_case:
        values["keep_capitalization"] = False
    if args.ignore_punctuation:
        values["keep_punctuation"] = False
    return NormalizationOptions(**values)


def _fmt(value, suffix="") -> str:
    if value is None:
        return "n/a"
    return f"{value:.3f}{suffix}"


def print_result(result: ComparisonResult, max_ops: int):
    changes = [op for op in result.operations if op.is_change]
    print("=== EDIT SCRIPT ===")
    print(f"  {len(result.operations)} operations, {len(changes)} changes")
    for op in changes[:max_ops]:
        print(f"    {op}")
    if len(changes) > max_ops:
        print(f"    ... {len(changes) - max_ops} more")

    report = result.report
    unit = "characters" if report.granularity == Granularity.CHARACTER else "words"
    print()
    print("=== SIMILARITY ===")
    print(f"  Text 1: {report.total_text1} {unit}, text 2: {report.total_text2} {unit}")
    print(f"  Distance: {report.distance}")
    print(f"  S/D/I: {report.substitutions}/{report.deletions}/{report.insertions}")
    print(f"  S_obs: {_fmt(report.s_obs)}")
    if report.degraded:
        print("  (diff failed or timed out; scores computed without an edit script)")
    if report.granularity == Granularity.CHARACTER:
        print(f"  CER: {_fmt(report.cer, '%')}")
        print(f"  NED: {_fmt(report.ned, '%')}")
        print(f"  S_baseline: {_fmt(report.s_baseline)}")
        print(f"  S_corr: {_fmt(report.s_corr)}")
        print(f"  S_adj: {_fmt(report.s_adj)}")
        if report.case_changes and report.case_changes.total:
            cc = report.case_changes
            print(f"  Case changes: {cc.to_lower} to lower, {cc.to_upper} to upper")
        for label, stats in (("Text 1", report.char_stats_text1), ("Text 2", report.char_stats_text2)):
            if stats is not None:
                print(f"  {label}: {stats.capitalizations} capitals, {stats.punctuation_total} punctuation marks")
        if report.capitalization_changes is not None:
            caps = report.capitalization_changes
            print(f"  Capitalized words: {caps.removed} removed, {caps.added} added, {caps.unchanged} unchanged")
    else:
        print(f"  WER: {_fmt(report.wer, '%')}")
        print(f"  Jaccard: {_fmt(report.jaccard_similarity, '%')}")
        print(f"  Cosine: {_fmt(report.cosine_similarity, '%')}")
        print(f"  Vocabulary overlap: {_fmt(report.vocabulary_overlap, '%')}")
        for label, stats in (("Text 1", report.word_stats_text1), ("Text 2", report.word_stats_text2)):
            if stats is not None:
                print(f"  {label}: TTR {_fmt(stats.type_token_ratio, '%')}, "
                      f"avg word length {_fmt(stats.average_word_length)}, "
                      f"stopwords {_fmt(stats.stopword_percentage, '%')}")

    variants = result.variants
    print()
    print("=== VARIANT FORMS ===")
    for category, total in variants.category_totals.items():
        print(f"  {category}: {total}")
    for key, count in sorted(variants.change_tallies.items(), key=lambda kv: -kv[1]):
        print(f"    {key}: {count}")
    if variants.text1_tallies:
        print(f"  Text 1 forms: {variants.text1_tallies}")
    if variants.text2_tallies:
        print(f"  Text 2 forms: {variants.text2_tallies}")


def main():
    parser = argparse.ArgumentParser(description='Compare two transcriptions')
    parser.add_argument('file1', type=Path, help='First (reference) text')
    parser.add_argument('file2', type=Path, help='Second text')
    parser.add_argument('--granularity', choices=['word', 'character'], default='word',
                       help='Comparison unit')
    parser.add_argument('--config', type=Path,
                       help='Context YAML (default: $COLLATION_CONFIG)')
    parser.add_argument('--confusion-matrix', type=Path,
                       help='Confusion matrix YAML; overrides the one in --config')
    parser.add_argument('--fold-logograms', action='store_true')
    parser.add_argument('--fold-ligatures', action='store_true')
    parser.add_argument('--fold-archaic-letters', action='store_true')
    parser.add_argument('--normalize-uvw', action='store_true', help='uu/vv -> w')
    parser.add_argument('--fold-u-to-v', action='store_true')
    parser.add_argument('--fold-j-to-i', action='store_true')
    parser.add_argument('--ignore-case', action='store_true')
    parser.add_argument('--ignore-punctuation', action='store_true')
    parser.add_argument('--keep-whitespace', action='store_true')
    parser.add_argument('--collapse-whitespace', action='store_true')
    parser.add_argument('--max-ops', type=int, default=50, help='Changes to print')
    parser.add_argument('--json', action='store_true', help='Print report and variants as JSON')
    parser.add_argument('--verbose', '-v', action='store_true')
    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else default_config()
        context = config.context
        if args.confusion_matrix:
            context = context.with_confusion_matrix(ConfusionMatrix.from_yaml(args.confusion_matrix))
        options = build_options(args, config.normalization)

        text1 = args.file1.read_text(encoding="utf-8")
        text2 = args.file2.read_text(encoding="utf-8")
        result = compare_texts(text1, text2, Granularity.parse(args.granularity), options, context)
    except (OSError, CollationError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(result.report.model_dump_json(indent=2))
        print(result.variants.model_dump_json(indent=2))
    else:
        print_result(result, args.max_ops)


if __name__ == '__main__':
    main()
