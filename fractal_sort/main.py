from __future__ import annotations

import argparse
import logging
import os
import random
import time
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from random import randint as rd

import matplotlib.pyplot as plt

from fractal_sort.fractal import fractal_sort, fractal_sort_parallel

log = logging.getLogger(__name__)

DEMO_DATA = [
    18, 2, 12, 5, 29, 17, 4, 0,
    19, 23, 1, 9, 7, 6,
    59, 559, 342, 678, 231, 560,
    248, 2485, 2495, 2495, 586, 35,
    788,
    8, 976, 0, 668, 866, 765, 57, 43, 75, 8, 754, 74,
    75, 965, 86, 75578, 98,
]


def run_demo(data=None, *, rng=None):
    if data is None:
        data = DEMO_DATA
    arr = list(data)

    print("Original:")
    print(" ".join(str(x) for x in arr))

    fractal_sort(arr, rng=rng)

    print("\nSorted:")
    print(" ".join(str(x) for x in arr))
    return arr


def fractal(arr):
    fractal_sort(arr)
    return arr


def fractal_parallel(arr):
    fractal_sort_parallel(arr)
    return arr


def default_sort(arr):
    arr.sort()
    return arr


SORTERS = {
    "fractal_sort": fractal,
    "fractal_parallel": fractal_parallel,
    ".sort()": default_sort,
}


def measure(sort_fn, base_arr, reps=3):
    """Best wall time of sort_fn over reps fresh copies of base_arr."""
    if len(base_arr) <= 1:
        return 0.0
    timings = []
    for _ in range(reps):
        arr = list(base_arr)
        t0 = time.perf_counter()
        sort_fn(arr)
        timings.append(time.perf_counter() - t0)
    return min(timings)


def bench_one_n(args):
    n, base_arr, reps = args

    expected = sorted(base_arr)
    timings = {}
    for name, sort_fn in SORTERS.items():
        result = sort_fn(base_arr.copy())
        if result != expected:
            raise AssertionError(f"{name} produced a wrong result for n={n}")
        timings[name] = measure(sort_fn, base_arr, reps=reps)

    return n, timings


def run_bench(tasks, workers=None):
    times = {name: [] for name in SORTERS}

    with ProcessPoolExecutor(max_workers=workers) as executor:
        for n, timings in executor.map(bench_one_n, tasks):
            log.info("n=%d: %s", n, ", ".join(f"{k}={v:.4f}s" for k, v in timings.items()))
            for name, t in timings.items():
                times[name].append(t)

    return times


def uniform_values(n, max_value=10_000_000):
    return [rd(1, max_value) for _ in range(n)]


def random_walk(n, jump_prob=0.05):
    # creeps upwards by 0 or 1, with occasional jumps of up to 10 either way
    walk = []
    value = 1
    for _ in range(n):
        step = rd(-10, 10) if random.random() < jump_prob else rd(0, 1)
        value = max(1, value + step)
        walk.append(value)
    return walk


def ramp(n, descending=False):
    return list(range(n, 0, -1)) if descending else list(range(n))


def zigzag(n):
    # n, 1, n-1, 2, ...
    return [n - i // 2 if i % 2 == 0 else i // 2 + 1 for i in range(n)]


def few_values(n, distinct_values=3, max_value=20):
    pool = random.sample(range(1, max_value + 1), k=distinct_values)
    return random.choices(pool, k=n)


def mostly_minimum(n, share=0.95, max_value=1_000_000):
    return [0 if random.random() < share else rd(1, max_value) for _ in range(n)]


def spread_values(n, range_multiplier=1000):
    return random.sample(range(1, max(1, n * range_multiplier) + 1), n)


# name -> (generator taking the array size, plot label)
GENERATORS = {
    "random": (uniform_values, "Random data"),
    "jumps": (partial(random_walk, jump_prob=0.05), "Data with jumps"),
    "best": (ramp, "Best-case data"),
    "worst": (partial(ramp, descending=True), "Worst-case data"),
    "alternating": (zigzag, "Alternating-case data"),
    "duplicates": (partial(few_values, distinct_values=3, max_value=20), "Many duplicates data"),
    "skewed": (partial(mostly_minimum, share=0.95), "Mostly-minimum data"),
    "unique": (partial(spread_values, range_multiplier=1000), "Many unique spread data"),
}


def plot_results(sizes, series, title, output=None):
    """
    Plot sorting time against array size, one line per (label, times) pair
    in series. The figure is saved to output when given, shown otherwise.
    """
    fig, ax = plt.subplots(figsize=(10, 6))
    for label, values in series:
        ax.plot(sizes, values, marker="o", label=label)

    ax.set(title=title, xlabel="Array size", ylabel="Time, sec")
    ax.grid(True)
    ax.legend()
    fig.tight_layout()
    if output is None:
        plt.show()
    else:
        fig.savefig(output)
    plt.close(fig)


def run_benchmarks(inputs, sizes, reps=3, workers=None, output_dir=None):
    for name in inputs:
        generate, label = GENERATORS[name]
        log.info("Starting benchmark for %s data over %d sizes", name, len(sizes))

        tasks = [(n, generate(n), reps) for n in sizes]
        times = run_bench(tasks, workers=workers)

        output = None
        if output_dir is not None:
            output = os.path.join(output_dir, f"{name}.png")
        plot_results(sizes, list(times.items()), f"{label} sorting comparison", output=output)
        log.info("Benchmark for %s data completed", name)


def positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(prog="fractal-sort", description="Fractal sort demo and benchmarks.")
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    demo = sub.add_parser('demo', help='Sort the demonstration array and print it')
    demo.add_argument('--seed', type=int, default=None, help='Seed for pivot sampling')

    bench = sub.add_parser('bench', help='Time fractal sort against list.sort() and plot the results')
    bench.add_argument('--max-size', type=positive_int, default=100_000, help='Largest array size (default: 100000)')
    bench.add_argument('--step', type=positive_int, default=10_000, help='Distance between array sizes (default: 10000)')
    bench.add_argument('--reps', type=positive_int, default=3, help='Repetitions per measurement (default: 3)')
    bench.add_argument('--inputs', nargs='+', default=list(GENERATORS), choices=list(GENERATORS),
                       help='Input families to benchmark (default: all)')
    bench.add_argument('--workers', type=positive_int, default=None, help='Benchmark worker processes')
    bench.add_argument('--output-dir', type=str, default=None,
                       help='Save plots as PNG files here instead of showing them')
    bench.add_argument('--seed', type=int, default=None, help='Seed for input generation')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(levelname)s - %(message)s')

    if args.command == 'demo':
        rng = random.Random(args.seed) if args.seed is not None else None
        run_demo(rng=rng)
        return 0

    if args.seed is not None:
        random.seed(args.seed)
    if args.output_dir is not None:
        os.makedirs(args.output_dir, exist_ok=True)
    sizes = list(range(1, args.max_size + 1, args.step))
    run_benchmarks(args.inputs, sizes, reps=args.reps, workers=args.workers, output_dir=args.output_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
