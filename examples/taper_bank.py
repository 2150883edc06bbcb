"""Build a bank of cap tapers for every order and report the best ones.

Each order is an independent call, so the bank is filled from a thread pool.

    python examples/taper_bank.py --theta0 15 --lmax 30 --top 10
"""

from __future__ import annotations

import argparse
import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from capslep import CapTaperSolver, cap_shannon_number, setup_logging

logger = logging.getLogger("capslep.examples.taper_bank")


def build_bank(
    solver: CapTaperSolver, theta0: float, lmax: int, workers: int
) -> dict[int, tuple[np.ndarray, np.ndarray, float]]:
    def _one(m: int) -> tuple[int, tuple[np.ndarray, np.ndarray, float]]:
        result = solver.compute(theta0, lmax, m)
        return m, (result.tapers, result.eigenvalues, result.shannon)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return dict(pool.map(_one, range(-lmax, lmax + 1)))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--theta0", type=float, default=15.0, help="cap radius in degrees")
    parser.add_argument("--lmax", type=int, default=30)
    parser.add_argument("--top", type=int, default=10)
    parser.add_argument("--workers", type=int, default=4)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    setup_logging(verbose=args.verbose)
    theta0 = math.radians(args.theta0)
    solver = CapTaperSolver()

    start = time.perf_counter()
    bank = build_bank(solver, theta0, args.lmax, args.workers)
    elapsed = time.perf_counter() - start

    total = sum(shannon for _, _, shannon in bank.values())
    logger.info(
        "%d orders in %.2fs; Shannon number %.4f (closed form %.4f)",
        len(bank),
        elapsed,
        total,
        cap_shannon_number(theta0, args.lmax),
    )

    ranked = sorted(
        ((ev, m, j) for m, (_, evals, _) in bank.items() for j, ev in enumerate(evals)),
        reverse=True,
    )
    for ev, m, j in ranked[: args.top]:
        logger.info("m=%+d taper %d: concentration %.10f", m, j, ev)


if __name__ == "__main__":
    main()
