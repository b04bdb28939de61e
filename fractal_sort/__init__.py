from fractal_sort.fractal import (
    DEFAULT_CONFIG,
    OUTLIER_FRAC,
    PARALLEL_THRESHOLD,
    SAMPLE_FACTOR,
    SMALL_THRESHOLD,
    FractalConfig,
    InvalidRange,
    fix_bidirectional,
    fractal_sort,
    fractal_sort_parallel,
    multi_bucket_merge,
    sort_pivots,
)

__all__ = [
    "DEFAULT_CONFIG",
    "OUTLIER_FRAC",
    "PARALLEL_THRESHOLD",
    "SAMPLE_FACTOR",
    "SMALL_THRESHOLD",
    "FractalConfig",
    "InvalidRange",
    "fix_bidirectional",
    "fractal_sort",
    "fractal_sort_parallel",
    "multi_bucket_merge",
    "sort_pivots",
]
