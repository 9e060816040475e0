#!/usr/bin/env python3
"""``lcrefine`` Land-Cover Refinement Pipeline Runner.

Usage:
    python scripts/run_refine_pipeline.py scripts/user_config.py
    python scripts/run_refine_pipeline.py scripts/user_config.py --reference-epoch 2024
    python scripts/run_refine_pipeline.py scripts/user_config.py --boundary-policy forward_pair

Note: User config in scripts/user_config.py, expert defaults in lcrefine.schemas.param
"""

import argparse

from lcrefine.cli import run_refine_pipeline


def main():
    parser = argparse.ArgumentParser(description="Run the lcrefine land-cover refinement pipeline")
    parser.add_argument("config", help="Path to user config file")
    parser.add_argument("--output-dir", help="Output directory")
    parser.add_argument("--reference-epoch", help="Protected reference epoch label")
    parser.add_argument("--boundary-policy", choices=["passthrough", "forward_pair"],
                        help="Temporal smoothing policy at series ends")
    parser.add_argument("--max-workers", type=int, help="Epochs refined in parallel")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    run_refine_pipeline(
        args.config,
        cli_args={
            "output_dir": args.output_dir,
            "reference_epoch": args.reference_epoch,
            "boundary_policy": args.boundary_policy,
            "max_workers": args.max_workers,
        },
        verbose=args.verbose,
    )


if __name__ == "__main__":
    main()
