"""
Huffman codec experiments: character vs byte symbol units

Runs the codec over synthetic corpora, with repeated runs, and records how the
choice of alphabet unit affects code size, savings and speed

Outputs (in --outdir):
  - metrics.csv     (raw row per run per unit)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 64 --exp2_max_kb 1024
  python experiments.py --outdir results --exp1_generators english_like,multilingual
"""

from __future__ import annotations

import argparse
import csv
import random
import statistics
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from loguru import logger

import huffman as huff

UNITS = ("char", "byte")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0


# Synthetic corpora (text, so both units apply)

ENGLISH_WEIGHTS = {" ": 13.0, "\n": 1.5}
for _ch in "etaoinshrdlu":
    ENGLISH_WEIGHTS[_ch] = 6.0
for _ch in "cmfwgypbvk":
    ENGLISH_WEIGHTS[_ch] = 2.5
for _ch in "jxqz":
    ENGLISH_WEIGHTS[_ch] = 0.3
for _ch in "ETAOINSHRDLCUMWFGYPBVKJXQZ.,":
    ENGLISH_WEIGHTS[_ch] = 0.8

MULTILINGUAL_ALPHABET = "aeiouäöüßéèçñ αβγδεζηθ абвгдеж 日本語中文한국어\n"


def _weighted_text(alphabet: List[str], weights: List[float], size: int, seed: int) -> str:
    rng = random.Random(seed)
    return "".join(rng.choices(alphabet, weights=weights, k=size))

def gen_uniform(size: int, alphabet: int = 95, seed: int = 0) -> str:
    chars = [chr(32 + i) for i in range(alphabet)]
    return _weighted_text(chars, [1.0] * len(chars), size, seed)

def gen_zipf_like(size: int, alphabet: int = 64, s: float = 1.2, seed: int = 0) -> str:
    chars = [chr(33 + i) for i in range(alphabet)]
    return _weighted_text(chars, [1.0 / ((i + 1) ** s) for i in range(alphabet)], size, seed)

def gen_repetitive(size: int, dominant: str = "A", dom_frac: float = 0.90, seed: int = 0) -> str:
    others = [chr(i) for i in range(33, 127) if chr(i) != dominant]
    weights = [dom_frac] + [(1.0 - dom_frac) / len(others)] * len(others)
    return _weighted_text([dominant] + others, weights, size, seed)

def gen_english_like(size: int, seed: int = 0) -> str:
    return _weighted_text(list(ENGLISH_WEIGHTS), list(ENGLISH_WEIGHTS.values()), size, seed)

def gen_multilingual(size: int, seed: int = 0) -> str: # many multi-byte codepoints under UTF-8
    alphabet = list(MULTILINGUAL_ALPHABET)
    return _weighted_text(alphabet, [1.0 + (i % 5) for i in range(len(alphabet))], size, seed)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], str]] = {
    "uniform95": lambda size, seed: gen_uniform(size, alphabet=95, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "multilingual": lambda size, seed: gen_multilingual(size, seed=seed),
}

def generate_dataset(name: str, size_chars: int, seed: int) -> str:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}; choose from {', '.join(sorted(GENERATOR_REGISTRY))}")
    return fn(size_chars, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    input_chars: int
    run_id: int
    unit: str  # "char" or "byte"
    input_symbols: int
    unique_symbols: int

    build_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    encoded_bits: int
    pad_bits: int
    savings_bits: int
    compression_ratio: float
    mean_code_length: float
    entropy_bits: float
    correctness_ok: int  # 1 or 0


def symbols_for(text: str, unit: str) -> List[huff.Symbol]:
    if unit == "char":
        return list(text)
    if unit == "byte":
        return list(text.encode("utf-8"))
    raise ValueError("unit must be 'char' or 'byte'")


def run_one(text: str, unit: str) -> MetricRow:
    symbols = symbols_for(text, unit)

    t0 = now_ns()
    coder = huff.HuffmanCoder.from_symbols(symbols)
    t1 = now_ns()

    packed, pad_bits = huff.pack_bits(coder.encode(symbols)[0])
    t2 = now_ns()

    decoded = huff.decode(coder.codebook, huff.unpack_bits(packed, pad_bits))
    t3 = now_ns()

    encoded_bits = len(packed) * 8 - pad_bits
    return MetricRow(
        exp_name="",
        dataset_name="",
        input_chars=len(text),
        run_id=0,
        unit=unit,
        input_symbols=len(symbols),
        unique_symbols=len(coder.codebook),
        build_ms=ns_to_ms(t1 - t0),
        encode_ms=ns_to_ms(t2 - t1),
        decode_ms=ns_to_ms(t3 - t2),
        total_ms=ns_to_ms(t3 - t0),
        encoded_bits=encoded_bits,
        pad_bits=pad_bits,
        savings_bits=coder.savings(),
        # against the UTF-8 size of the text, so both units share a baseline
        compression_ratio=encoded_bits / max(1, 8 * len(text.encode("utf-8"))),
        mean_code_length=coder.mean_code_length(),
        entropy_bits=huff.shannon_entropy(coder.frequencies),
        correctness_ok=1 if decoded == symbols else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


SUMMARY_METRICS = ("compression_ratio", "savings_bits", "mean_code_length", "entropy_bits", "build_ms", "encode_ms", "decode_ms", "total_ms")


def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, input_chars, unit and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key_to.setdefault((r.exp_name, r.dataset_name, r.input_chars, r.unit), []).append(r)

    summary_fields = ["exp_name", "dataset_name", "input_chars", "unit", "n_runs", "unique_symbols"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for (exp_name, dataset_name, size, unit), items in sorted(key_to.items()):
            out = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "input_chars": size,
                "unit": unit,
                "n_runs": len(items),
                "unique_symbols": max(x.unique_symbols for x in items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                out[f"{m}_mean"], out[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(out)


# Plotting

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))

    def mean_for(dataset: str, unit: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset and r.unit == unit]
        return statistics.mean(vals) if vals else float("nan")

    x = list(range(len(datasets)))

    for field, ylabel, fname in (
        ("compression_ratio", "Encoded Bits / UTF-8 Bits", "exp1_compression_ratio.png"),
        ("mean_code_length", "Mean Code Length (bits/symbol)", "exp1_mean_code_length.png"),
        ("encode_ms", "Encode Time (ms)", "exp1_encode_time.png"),
    ):
        plt.figure()
        for u in UNITS:
            plt.plot(x, [mean_for(d, u, field) for d in datasets], marker="o", label=u)
        if field == "mean_code_length":
            plt.plot(x, [mean_for(d, "char", "entropy_bits") for d in datasets], linestyle="--", label="char entropy")
        plt.xticks(x, datasets, rotation=20, ha="right")
        plt.ylabel(ylabel)
        plt.title(f"Experiment 1: {ylabel.split(' (')[0]} by Distribution")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / fname, dpi=200)
        plt.close()


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.input_chars for r in dist_rows))

        def mean_size(size: int, unit: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.input_chars == size and r.unit == unit]
            return statistics.mean(vals) if vals else float("nan")

        for field, ylabel, stem in (
            ("total_ms", "Total Time (ms) (build + encode + decode)", "exp2_total_time"),
            ("savings_bits", "Savings (bits)", "exp2_savings"),
        ):
            plt.figure()
            for u in UNITS:
                plt.plot(sizes, [mean_size(s, u, field) for s in sizes], marker="o", label=u)
            plt.xlabel("Input Size (characters)")
            plt.ylabel(ylabel)
            plt.title(f"Experiment 2: {ylabel.split(' (')[0]} vs Size ({dist})")
            plt.legend()
            plt.tight_layout()
            plt.savefig(outdir / f"{stem}_{dist}.png", dpi=200)
            plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def run_experiments(args: argparse.Namespace) -> List[MetricRow]:
    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                text = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                for unit in UNITS:
                    row = run_one(text, unit)
                    row.exp_name = "exp1_distribution"
                    row.dataset_name = gen_name
                    row.run_id = run_id
                    rows.append(row)

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        sizes: List[int] = []
        s = max(1, args.exp2_min_kb) * 1024
        while s <= max(1, args.exp2_max_kb) * 1024:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size in sizes:
                for run_id in range(1, args.runs + 1):
                    text = generate_dataset(gen_name, size, args.seed + 10_000 + size + run_id)
                    for unit in UNITS:
                        row = run_one(text, unit)
                        row.exp_name = "exp2_size_scaling"
                        row.dataset_name = gen_name
                        row.run_id = run_id
                        rows.append(row)
    return rows

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Benchmark the Huffman codec on synthetic corpora")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")

    ap.add_argument("--exp1_size_kb", type=int, default=256, help="Experiment 1 fixed size in K characters")
    ap.add_argument("--exp1_generators", type=str, default="uniform95,zipf64,repetitive90,english_like,multilingual",
                    help="Comma-separated dataset generator names for experiment 1")

    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in K characters (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=2048, help="Experiment 2 max size in K characters")
    ap.add_argument("--exp2_generators", type=str, default="english_like,multilingual",
                    help="Comma-separated dataset generator names for experiment 2")
    return ap

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    rows = run_experiments(args)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    plot_experiment_1(rows, outdir)
    plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    logger.info(f"Wrote {len(rows)} rows to {metrics_csv}")
    logger.info(f"Wrote grouped summary to {summary_csv}")
    logger.info(f"Round-trip correctness rate: {ok_rate:.3f}")
    return 0 if ok_rate == 1.0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
