from .errors import (
    CollationError,
    ConfusionMatrixError,
    DiffTimeoutError,
)

from .config import (
    Granularity,
    NormalizationOptions,
    ComparisonContext,
    CollationConfig,
    load_config,
    load_context,
    default_config,
    default_context,
)

from .normalization import normalize
from .tokenize import tokenize, normalize_and_tokenize, word_tokens_for_metrics

from .sequence_diff import (
    DIFF_DELETE,
    DIFF_EQUAL,
    DIFF_INSERT,
    DiffSettings,
    SequenceDiffer,
)

from .edit_script import (
    OpKind,
    EditOperation,
    refine_diffs,
    drop_whitespace_artifacts,
    generate_diffs,
    text1_side,
    text2_side,
    compute_distance,
)

from .variants import VariantAnalysis, analyze_variants

# Bias-aware confusion model
from .confusion import (
    ConfusionMatrix,
    to_probability_matrix,
    glyph_reliabilities,
    glyph_error_rates,
    build_confusion_matrix,
)

from .baseline import (
    glyph_frequencies,
    per_glyph_baseline_agreement,
    overall_baseline_agreement,
)

from .weights import WeightTable, build_weight_table, weight_table_for

from .alignment import ABSENT, AlignmentPair, build_character_alignment

# Descriptive statistics
from .text_stats import (
    STOPWORDS,
    WordStatistics,
    CharacterStatistics,
    CapitalizationChanges,
    word_frequencies,
    type_token_ratio,
    average_word_length,
    word_length_distribution,
    stopword_percentage,
    vocabulary_overlap,
    word_statistics,
    count_capitalizations,
    count_punctuation,
    count_characters,
    character_statistics,
    capitalization_changes,
)

from .similarity import (
    SimilarityReport,
    CaseChanges,
    observed_similarity,
    corrected_similarity,
    weighted_similarity,
    error_rates,
    jaccard_similarity,
    cosine_similarity,
    character_case_changes,
    build_similarity_report,
)

from .compare import ComparisonResult, compare_texts
