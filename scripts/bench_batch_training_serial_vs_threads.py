"""
scripts/bench_batch_training_serial_vs_threads.py

Step-level microbenchmark for batched XOR training in ShapeChain, running the
batch forward pass serially or through a thread pool.

What this measures (per training iteration)
------------------------------------------
- forward:   batch_run_network(xs, executor=...)
- backward:  batch_run_gradient(tapes, ys - targets)
- clip:      clip_by_global_norm(threshold, grads)
- update:    apply_update(optimizer, grads)

Timing policy
-------------
- Uses warmup iterations (not recorded).
- Then repeats iterations and records per-step durations.

Usage
-----
python scripts/bench_batch_training_serial_vs_threads.py
python scripts/bench_batch_training_serial_vs_threads.py --workers 4 --batch_repeat 64
python scripts/bench_batch_training_serial_vs_threads.py --hidden 32 --repeats 500
"""

from __future__ import annotations

import argparse
import os
import statistics
import sys
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

# -------------------------
# Make repo_root/src importable
# -------------------------
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
SRC_DIR = os.path.join(ROOT_DIR, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from shapechain import (  # noqa: E402
    SGD,
    FullyConnected,
    Logit,
    Shape,
    Tanh,
    Tensor,
    clip_by_global_norm,
    random_network,
)


def _fmt_seconds(x: float) -> str:
    if x < 1e-6:
        return f"{x*1e9:.2f} ns"
    if x < 1e-3:
        return f"{x*1e6:.2f} µs"
    if x < 1:
        return f"{x*1e3:.2f} ms"
    return f"{x:.3f} s"


def _median(xs: list[float]) -> float:
    return statistics.median(xs) if xs else float("nan")


def _p95(xs: list[float]) -> float:
    if not xs:
        return float("nan")
    xs2 = sorted(xs)
    k = int(0.95 * (len(xs2) - 1))
    return xs2[k]


@dataclass
class StepStats:
    forward: list[float] = field(default_factory=list)
    backward: list[float] = field(default_factory=list)
    clip: list[float] = field(default_factory=list)
    update: list[float] = field(default_factory=list)
    total: list[float] = field(default_factory=list)


def _timed(fn: Callable[[], object]) -> tuple[object, float]:
    t0 = time.perf_counter()
    out = fn()
    return out, time.perf_counter() - t0


def _xor_batch(repeat: int) -> tuple[list[Tensor], list[Tensor]]:
    xs = [
        Tensor.from_list(Shape.d1(2), v)
        for v in ([0, 0], [0, 1], [1, 0], [1, 1])
    ]
    ts = [Tensor.from_list(Shape.d1(1), [v]) for v in (0, 1, 1, 0)]
    return xs * repeat, ts * repeat


def _run(
    label: str,
    *,
    hidden: int,
    lr: float,
    clip: float,
    seed: int,
    warmup: int,
    repeats: int,
    batch_repeat: int,
    executor: Optional[Executor],
) -> None:
    net = random_network(
        [FullyConnected(2, hidden), Tanh(), FullyConnected(hidden, 1), Logit()],
        [Shape.d1(2), Shape.d1(hidden), Shape.d1(hidden), Shape.d1(1), Shape.d1(1)],
        rng=np.random.default_rng(seed),
    )
    opt = SGD(learning_rate=lr)
    xs, ts = _xor_batch(batch_repeat)
    stats = StepStats()

    for it in range(warmup + repeats):
        (tapes, ys), t_fwd = _timed(lambda: net.batch_run_network(xs, executor=executor))
        dys = [y - t for y, t in zip(ys, ts)]
        (grads, _), t_bwd = _timed(lambda: net.batch_run_gradient(tapes, dys))
        grads, t_clip = _timed(lambda: clip_by_global_norm(clip, grads))
        net, t_upd = _timed(lambda: net.apply_update(opt, grads))

        if it >= warmup:
            stats.forward.append(t_fwd)
            stats.backward.append(t_bwd)
            stats.clip.append(t_clip)
            stats.update.append(t_upd)
            stats.total.append(t_fwd + t_bwd + t_clip + t_upd)

    _, ys = net.batch_run_network(xs[:4])
    preds = " ".join(f"{y.to_list()[0]:.3f}" for y in ys)

    print(f"\n== {label} ==")
    print(f"batch size: {len(xs)}  final predictions: {preds}")
    for name in ("forward", "backward", "clip", "update", "total"):
        xs_ = getattr(stats, name)
        print(
            f"  {name:<9} median {_fmt_seconds(_median(xs_)):>10}   "
            f"p95 {_fmt_seconds(_p95(xs_)):>10}"
        )


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--warmup", type=int, default=20, help="warmup iterations (not recorded)")
    ap.add_argument("--repeats", type=int, default=200, help="recorded iterations")
    ap.add_argument("--hidden", type=int, default=8)
    ap.add_argument("--lr", type=float, default=0.5)
    ap.add_argument("--clip", type=float, default=5.0, help="global-norm clipping threshold")
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--workers", type=int, default=4, help="thread pool size")
    ap.add_argument(
        "--batch_repeat",
        type=int,
        default=16,
        help="Repeat the 4 XOR samples this many times to increase batch size.",
    )
    args = ap.parse_args()

    common = dict(
        hidden=args.hidden,
        lr=args.lr,
        clip=args.clip,
        seed=args.seed,
        warmup=args.warmup,
        repeats=args.repeats,
        batch_repeat=args.batch_repeat,
    )
    _run("serial", executor=None, **common)
    with ThreadPoolExecutor(max_workers=args.workers) as pool:
        _run(f"threads x{args.workers}", executor=pool, **common)


if __name__ == "__main__":
    main()
