from __future__ import annotations

import logging
import math
import os
import random
from bisect import bisect_right
from collections.abc import MutableSequence, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from heapq import heappop, heappush

log = logging.getLogger(__name__)


SMALL_THRESHOLD = 12
SAMPLE_FACTOR = 2.0
OUTLIER_FRAC = 0.15
PARALLEL_THRESHOLD = 1_000

_RNG = random.Random()


class InvalidRange(ValueError):
    """Raised when a non-empty range does not fit inside the sequence."""

    def __init__(self, start: int, end: int, length: int):
        super().__init__(
            f"range [{start}, {end}] is out of bounds for a sequence of length {length}"
        )
        self.start = start
        self.end = end
        self.length = length


@dataclass(frozen=True)
class FractalConfig:
    """
    Tuning knobs for fractal sort.

    small_threshold - ranges of at most this many elements use the fix pass
    sample_factor - how many samples to draw per pivot
    outlier_frac - fraction of the sorted sample dropped from each end
    parallel_threshold - smallest input the parallel driver fans out on
    """

    small_threshold: int = SMALL_THRESHOLD
    sample_factor: float = SAMPLE_FACTOR
    outlier_frac: float = OUTLIER_FRAC
    parallel_threshold: int = PARALLEL_THRESHOLD

    def __post_init__(self) -> None:
        if self.small_threshold < 1:
            raise ValueError("small_threshold must be >= 1")
        if self.sample_factor <= 0:
            raise ValueError("sample_factor must be > 0")
        if not 0 <= self.outlier_frac < 0.5:
            raise ValueError("outlier_frac must be in [0, 0.5)")
        if self.parallel_threshold < 1:
            raise ValueError("parallel_threshold must be >= 1")


DEFAULT_CONFIG = FractalConfig()


def _check_range(a: Sequence[int], start: int, end: int) -> bool:
    # False means the range is empty and there is nothing to do.
    if start > end:
        return False
    if start < 0 or end >= len(a):
        raise InvalidRange(start, end, len(a))
    return True


def _order_triple(a: MutableSequence[int], i: int) -> bool:
    changed = False
    if a[i] > a[i + 1]:
        a[i], a[i + 1] = a[i + 1], a[i]
        changed = True
    if a[i + 1] > a[i + 2]:
        a[i + 1], a[i + 2] = a[i + 2], a[i + 1]
        changed = True
    if a[i] > a[i + 1]:
        a[i], a[i + 1] = a[i + 1], a[i]
        changed = True
    return changed


def _triple_fix(a: MutableSequence[int], start: int, end: int) -> None:
    if start >= end:
        return
    if end - start == 1:
        if a[start] > a[end]:
            a[start], a[end] = a[end], a[start]
        return

    changed = True
    while changed:
        changed = False
        for i in range(start, end - 1):
            if _order_triple(a, i):
                changed = True
        for i in range(end - 2, start - 1, -1):
            if _order_triple(a, i):
                changed = True


def fix_bidirectional(a: MutableSequence[int], start: int, end: int) -> None:
    """
    Sort a[start..end] (inclusive) in place with alternating forward and
    backward sweeps over overlapping triples, stopping after the first
    full cycle that makes no swap.

    Quadratic in the worst case; meant for small ranges.
    """
    if _check_range(a, start, end):
        _triple_fix(a, start, end)


def sort_pivots(pivots: MutableSequence[int]) -> None:
    _triple_fix(pivots, 0, len(pivots) - 1)


def multi_bucket_merge(buckets: Sequence[Sequence[int]]) -> list[int]:
    """
    k-way merge of individually sorted buckets through a min-heap.

    Equal values coming from different buckets are emitted in whatever
    order the heap yields them; callers must not rely on that order.
    """
    heap: list[tuple[int, int, int]] = []
    for b, bucket in enumerate(buckets):
        if bucket:
            heappush(heap, (bucket[0], b, 0))

    out: list[int] = []
    while heap:
        value, b, i = heappop(heap)
        out.append(value)
        i += 1
        if i < len(buckets[b]):
            heappush(heap, (buckets[b][i], b, i))
    return out


def _run_direction(a: Sequence[int], start: int, end: int) -> tuple[bool, bool]:
    if end - start < 1:
        return True, False

    first = a[start]
    last = a[end]

    if first <= last:
        prev = first
        for i in range(start + 1, end + 1):
            cur = a[i]
            if cur < prev:
                break
            prev = cur
        else:
            return True, False

    prev = a[start]
    for i in range(start + 1, end + 1):
        cur = a[i]
        if cur >= prev:
            break
        prev = cur
    else:
        return False, True

    return False, False


def _draw_samples(
    a: Sequence[int],
    start: int,
    end: int,
    count: int,
    rng: random.Random,
) -> list[int]:
    indices = rng.choices(range(start, end + 1), k=count)
    return [a[i] for i in indices]


def _trim_outliers(sample: list[int], pivot_count: int, outlier_frac: float) -> list[int]:
    n = len(sample)
    cut = int(outlier_frac * n)
    if cut > 0 and cut * 2 < n - pivot_count:
        return sample[cut:n - cut]
    return sample


def _choose_pivots(sample: Sequence[int], pivot_count: int) -> list[int]:
    # Strided picks approximate the quantiles of the sample.
    m = len(sample)
    if m == 0 or pivot_count <= 0:
        return []

    step = max(1, m // pivot_count)
    pivots: list[int] = []
    for i in range(pivot_count):
        pos = i * step
        if pos >= m:
            pos = m - 1
        pivots.append(sample[pos])
    return pivots


def _distribute(
    a: Sequence[int],
    start: int,
    end: int,
    pivots: Sequence[int],
) -> list[list[int]]:
    buckets: list[list[int]] = [[] for _ in range(len(pivots) + 1)]
    for i in range(start, end + 1):
        v = a[i]
        buckets[bisect_right(pivots, v)].append(v)
    return buckets


def _split_off_minimum(bucket: list[int]) -> tuple[list[int], list[int]]:
    low = min(bucket)
    equal: list[int] = []
    rest: list[int] = []
    for v in bucket:
        if v == low:
            equal.append(v)
        else:
            rest.append(v)
    return equal, rest


def _partition_once(
    a: MutableSequence[int],
    start: int,
    end: int,
    config: FractalConfig,
    rng: random.Random,
) -> tuple[list[list[int]], list[list[int]]]:
    """
    Split a[start..end] into ordered buckets.

    Returns (buckets, unsorted): every bucket in merge order, and the
    buckets that still need sorting. Both are empty when no pivots could
    be chosen.
    """
    size = end - start + 1

    pivot_count = max(2, math.isqrt(size))
    sample_count = max(pivot_count, int(pivot_count * config.sample_factor))

    sample = _draw_samples(a, start, end, sample_count, rng)
    _triple_fix(sample, 0, len(sample) - 1)
    sample = _trim_outliers(sample, pivot_count, config.outlier_frac)

    pivots = _choose_pivots(sample, pivot_count)
    if not pivots:
        return [], []
    sort_pivots(pivots)

    buckets = _distribute(a, start, end, pivots)
    for bucket in buckets:
        if len(bucket) == size:
            # Every pivot sits at or below the range minimum. Peel off the
            # run of minimum values so the remainder is strictly smaller.
            equal, rest = _split_off_minimum(bucket)
            log.debug("one-bucket partition of %d elements, %d equal to the minimum", size, len(equal))
            return [equal, rest], [rest] if len(rest) > 1 else []

    return buckets, [b for b in buckets if len(b) > 1]


def _fractal_sort_recursive(
    a: MutableSequence[int],
    start: int,
    end: int,
    config: FractalConfig,
    rng: random.Random,
) -> None:
    size = end - start + 1
    if size <= config.small_threshold:
        _triple_fix(a, start, end)
        return

    buckets, unsorted = _partition_once(a, start, end, config, rng)
    if not buckets:
        _triple_fix(a, start, end)
        return

    for bucket in unsorted:
        _fractal_sort_recursive(bucket, 0, len(bucket) - 1, config, rng)

    a[start:end + 1] = multi_bucket_merge(buckets)


def fractal_sort(
    a: MutableSequence[int],
    start: int | None = None,
    end: int | None = None,
    *,
    config: FractalConfig | None = None,
    rng: random.Random | None = None,
) -> None:
    """
    Sort a[start..end] (inclusive, whole sequence by default) in place.

    Samples pivots at random, splits the range into pivot_count + 1
    buckets, sorts each bucket recursively and merges them back with a
    heap. Small ranges go straight to fix_bidirectional. Not stable.
    """
    if start is None:
        start = 0
    if end is None:
        end = len(a) - 1
    if not _check_range(a, start, end):
        return
    if config is None:
        config = DEFAULT_CONFIG
    if rng is None:
        rng = _RNG

    is_sorted, is_rev = _run_direction(a, start, end)
    if is_sorted:
        return
    if is_rev:
        a[start:end + 1] = a[start:end + 1][::-1]
        return

    _fractal_sort_recursive(a, start, end, config, rng)


def fractal_sort_parallel(
    a: MutableSequence[int],
    *,
    config: FractalConfig | None = None,
    rng: random.Random | None = None,
    max_workers: int | None = None,
) -> None:
    if config is None:
        config = DEFAULT_CONFIG
    if rng is None:
        rng = _RNG

    n = len(a)
    if n <= config.parallel_threshold:
        fractal_sort(a, config=config, rng=rng)
        return

    lo, hi = 0, n - 1

    is_sorted, is_rev = _run_direction(a, lo, hi)
    if is_sorted:
        return
    if is_rev:
        a.reverse()
        return

    if max_workers is None:
        max_workers = os.cpu_count() or 2

    buckets, unsorted = _partition_once(a, lo, hi, config, rng)
    if not buckets:
        _triple_fix(a, lo, hi)
        return

    big_buckets: list[list[int]] = []
    for bucket in unsorted:
        if len(bucket) > config.small_threshold * 4:
            big_buckets.append(bucket)
        else:
            _fractal_sort_recursive(bucket, 0, len(bucket) - 1, config, rng)

    if big_buckets:
        log.debug("sorting %d buckets on up to %d threads", len(big_buckets), max_workers)
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [
                pool.submit(
                    _fractal_sort_recursive,
                    bucket,
                    0,
                    len(bucket) - 1,
                    config,
                    random.Random(rng.getrandbits(64)),
                )
                for bucket in big_buckets
            ]
            for f in futures:
                f.result()

    a[lo:hi + 1] = multi_bucket_merge(buckets)
