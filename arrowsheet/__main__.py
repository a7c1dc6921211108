import argparse
import logging
import sys
from typing import Optional, Sequence

from arrowsheet import Quiver, SolverConfig, parse_script, run_script
from arrowsheet.logging_utils import format_complex

logger = logging.getLogger(__name__)

DEMO = """
# a + b, a * b and the additive inverse of a, then drag a
var a = 1+1i
var b = 2-0.5i
s = a + b
p = a * b
pin b
invert + a as na
settle
drag a to 0.5+1.5i
"""


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _print_quiver(quiver: Quiver) -> None:
    print("Arrows:")
    for arrow in quiver.arrows:
        flags = []
        if quiver.is_pinned(arrow):
            flags.append("pinned")
        if arrow.stay_pinned:
            flags.append("sticky")
        if arrow.aliases:
            flags.append(f"aliases={len(arrow.aliases)}")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"  {arrow.label or '(unlabelled)'}: {format_complex(arrow.position)} ({arrow.kind.value}){suffix}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run an arrowsheet scene script")
    parser.add_argument("path", nargs="?", help="Path to the scene script (default: built-in demo)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=2000,
        help="Relaxation steps per settle round (default: 2000)",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=1e-5,
        help="Total error below which the network counts as settled (default: 1e-5)",
    )
    parser.add_argument(
        "--max-rounds",
        type=int,
        default=50,
        help="Maximum settle rounds per settle statement (default: 50)",
    )
    parser.add_argument(
        "--step-size",
        type=float,
        default=0.01,
        help="Gradient descent step size (default: 0.01)",
    )
    parser.add_argument(
        "--merge-tolerance",
        type=float,
        default=0.1,
        help="Distance under which arrows count as coincident (default: 0.1)",
    )
    parser.add_argument(
        "--dedupe-constants",
        action="store_true",
        help="Share one wire between constants of equal value",
    )
    parser.add_argument(
        "--transitive",
        action="store_true",
        help="Cluster coincidences by transitive closure instead of a single scan",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    config = SolverConfig(
        step_size=args.step_size,
        dedupe_constants=args.dedupe_constants,
        convergence_threshold=args.threshold,
        relax_steps=args.steps,
        max_rounds=args.max_rounds,
        merge_tolerance=args.merge_tolerance,
        transitive_coincidences=args.transitive,
    )

    if args.path:
        with open(args.path) as fin:
            text = fin.read()
        source = args.path
    else:
        text = DEMO
        source = "<demo>"

    logger.info("Parsing script from %s", source)
    try:
        script = parse_script(text)
        result = run_script(script, config=config)
    except SyntaxError as exc:
        logger.error("%s: %s", source, exc)
        raise SystemExit(1)

    quiver = result.quiver
    _print_quiver(quiver)
    print(f"Total error: {quiver.total_error():.3e}")
    for idx, report in enumerate(result.reports):
        status = "converged" if report.converged else "not converged"
        print(f"Settle {idx}: {status} after {report.rounds} round(s), error={report.total_error:.3e}")


if __name__ == "__main__":
    main(sys.argv[1:])
