"""Command-line runner for a baseline / variant policy simulation.

Run ::

    python scripts/run_simulation.py -m menages.csv -b baseline.toml [-v variante.toml] [-p prefix]

Outputs are written to ``<prefix>-baseline-results.csv`` and, when a variant
is given, ``<prefix>-variante-results.csv`` and ``<prefix>-diff-results.csv``
(``.arrow`` files with ``-f arrow``).
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from kalkoto.api.json_serialization import json_default  # noqa: E402
from kalkoto.config import load_settings  # noqa: E402
from kalkoto.errors import KalkotoError  # noqa: E402
from kalkoto.orchestration.run import run_simulation, session_summary  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Simulate a baseline policy and an optional variant")
    parser.add_argument("-m", "--menage-input", required=True, help="Household file (CSV or Arrow)")
    parser.add_argument("-b", "--baseline-policy-input", required=True, help="Baseline policy file (TOML/YAML)")
    parser.add_argument("-v", "--variante-policy-input", help="Variant policy file (TOML/YAML)")
    parser.add_argument("-p", "--prefix", help="Prefix of the output files")
    parser.add_argument("-o", "--output-dir", help="Directory of the output files")
    parser.add_argument("-f", "--output-format", choices=["csv", "arrow"], help="Format of the output files")
    parser.add_argument("-c", "--config", help="YAML settings file")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config, output_format=args.output_format)
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        session = run_simulation(
            args.menage_input,
            args.baseline_policy_input,
            args.variante_policy_input,
            prefix=args.prefix,
            output_dir=args.output_dir,
            settings=settings,
        )
    except (KalkotoError, OSError) as exc:
        logging.getLogger("kalkoto").error("%s", exc)
        return 1

    print(str(session.menage_input))
    print(str(session.policy_baseline))
    print(json.dumps(session_summary(session), indent=2, default=json_default))
    return 0


if __name__ == "__main__":
    sys.exit(main())
