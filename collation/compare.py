"""
End-to-end comparison of two texts.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional

from .config import ComparisonContext, Granularity, NormalizationOptions
from .edit_script import EditOperation, generate_diffs
from .similarity import SimilarityReport, build_similarity_report
from .variants import VariantAnalysis, analyze_variants

log = logging.getLogger("collation.compare")


@dataclass(frozen=True)
class ComparisonResult:
    operations: List[EditOperation]
    report: SimilarityReport
    variants: VariantAnalysis


def compare_texts(
    text1: str,
    text2: str,
    granularity: Granularity = Granularity.WORD,
    options: Optional[NormalizationOptions] = None,
    context: Optional[ComparisonContext] = None,
) -> ComparisonResult:
    """
    Diff, score and tally two texts.

    At word granularity with whitespace kept, the returned edit script
    includes whitespace tokens, but the report is scored from a second diff
    with whitespace excluded so whitespace never counts as a word edit.
    """
    granularity = Granularity.parse(granularity)
    options = options or NormalizationOptions()
    context = context or ComparisonContext()
    log.debug("compare_texts: granularity=%s options=%s context=%s",
              granularity.value, options.to_dict(), context.to_dict())

    operations = generate_diffs(text1, text2, granularity, options, context)

    scored_operations = operations
    if granularity == Granularity.WORD and options.keep_whitespace:
        scored_operations = generate_diffs(
            text1, text2, granularity, replace(options, keep_whitespace=False), context
        )

    report = build_similarity_report(text1, text2, scored_operations, granularity, options, context)
    variants = analyze_variants(text1, text2, options, context.differ())

    log.info("compare_texts(%s): %d ops, distance=%d, s_obs=%.4f",
             granularity.value, len(operations), report.distance, report.s_obs)
    return ComparisonResult(operations=operations, report=report, variants=variants)
