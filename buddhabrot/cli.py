"""
Command-line entry point.

    buddhabrot --config configs/buddhabrot.yaml
    buddhabrot --workers 8 --target-mode points --target 2000000 --resolution 1024
    buddhabrot --probe=-0.75+0.1j --max-iter 50000
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace

from buddhabrot.complex_number import ComplexNumber
from buddhabrot.config import (
    BACKENDS,
    BATCH_MODES,
    TARGET_MODES,
    BuddhabrotConfig,
    ConfigError,
    load_config,
    validate_config,
)
from buddhabrot.escape import EscapeEvaluator
from buddhabrot.pipeline import default_sinks, run_pipeline
from buddhabrot.utils import parse_complex, parse_range, parse_resolution


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Monte Carlo Buddhabrot renderer")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")

    parser.add_argument("--real-range", type=parse_range, default=None, help="sampling real range, e.g. --real-range=-2,1")
    parser.add_argument("--imag-range", type=parse_range, default=None, help="sampling imaginary range")
    parser.add_argument("--hist-real-range", type=parse_range, default=None)
    parser.add_argument("--hist-imag-range", type=parse_range, default=None)
    parser.add_argument("--resolution", type=parse_resolution, default=None, help="e.g. 1920x1920")
    parser.add_argument("--clip", action="store_true", help="drop orbit values outside the histogram")

    parser.add_argument("--max-iter", type=int, default=None)
    parser.add_argument("--bailout", type=float, default=None, help="threshold on |z|^2")
    parser.add_argument("--min-iter", type=int, default=None)

    parser.add_argument("--batch-mode", choices=BATCH_MODES, default=None)
    parser.add_argument("--batch-size", type=int, default=None)
    parser.add_argument("--batch-iterations", type=int, default=None)
    parser.add_argument("--target-mode", choices=TARGET_MODES, default=None)
    parser.add_argument("--target", type=int, default=None)
    parser.add_argument("--save-interval", type=int, default=None)
    parser.add_argument("--record-threshold", type=int, default=None)

    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--backend", choices=BACKENDS, default=None)
    parser.add_argument("--channel-capacity", type=int, default=None)
    parser.add_argument("--outdir", type=str, default=None)

    parser.add_argument("--probe", type=parse_complex, default=None,
                        help="evaluate a single point and exit, e.g. --probe=-0.75+0.1j")
    parser.add_argument("--quiet", action="store_true")
    return parser


def config_from_args(args: argparse.Namespace) -> BuddhabrotConfig:
    cfg = load_config(args.config) if args.config else BuddhabrotConfig()

    sampling = cfg.sampling
    if args.real_range is not None:
        sampling = replace(sampling, real_range=args.real_range)
    if args.imag_range is not None:
        sampling = replace(sampling, imaginary_range=args.imag_range)

    hist = cfg.histogram_region
    if args.hist_real_range is not None:
        hist = replace(hist, real_range=args.hist_real_range)
    if args.hist_imag_range is not None:
        hist = replace(hist, imaginary_range=args.hist_imag_range)

    batch = cfg.batch
    if args.batch_mode is not None:
        batch = replace(batch, mode=args.batch_mode)
    if args.batch_size is not None:
        batch = replace(batch, size=args.batch_size)
    if args.batch_iterations is not None:
        batch = replace(batch, iterations=args.batch_iterations)

    target = cfg.target
    if args.target_mode is not None:
        target = replace(target, mode=args.target_mode)
    if args.target is not None:
        target = replace(target, value=args.target)

    output = cfg.output
    if args.outdir is not None:
        output = replace(output, directory=args.outdir)

    changes = dict(sampling=sampling, histogram_region=hist, batch=batch, target=target, output=output)
    scalar_overrides = {
        "resolution": args.resolution,
        "iteration_limit": args.max_iter,
        "bailout_squared": args.bailout,
        "min_iterations": args.min_iter,
        "save_interval": args.save_interval,
        "record_threshold": args.record_threshold,
        "workers": args.workers,
        "seed": args.seed,
        "backend": args.backend,
        "channel_capacity": args.channel_capacity,
    }
    changes.update({k: v for k, v in scalar_overrides.items() if v is not None})
    if args.clip:
        changes["clip"] = True

    return validate_config(cfg.with_overrides(**changes))


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = config_from_args(args)
    except ConfigError as e:
        print(f"[config] {e}", file=sys.stderr)
        return 2

    if args.probe is not None:
        point = ComplexNumber.from_complex(args.probe)
        evaluator = EscapeEvaluator()
        n = evaluator.evaluate(point, cfg.iteration_limit, cfg.bailout_squared)
        status = f"escapes at iteration {n}" if n is not None else "does not escape"
        print(f"[probe] c={point} {status} ({evaluator.iterations} iterations evaluated)")
        return 0

    image_sink, record_sink = default_sinks(cfg)
    try:
        run_pipeline(cfg, image_sink, record_sink, verbose=not args.quiet)
    finally:
        if record_sink is not None:
            record_sink.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
