"""Launch the simulation HTTP API.

Run :

    python scripts/run_api.py [--port 8080] [--config settings.yaml]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from kalkoto.api.api_app import create_app  # noqa: E402
from kalkoto.config import load_settings  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Launch the Kalkoto simulation API")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=8080, help="TCP port")
    parser.add_argument("--config", help="YAML settings file")
    args = parser.parse_args()

    settings = load_settings(args.config)
    logging.basicConfig(level=getattr(logging, settings.log_level))

    app = create_app(settings)
    print("Starting Kalkoto API -> http://%s:%d" % (args.host, args.port))
    app.run(host=args.host, port=args.port, debug=False, use_reloader=False)


if __name__ == "__main__":  # pragma: no cover
    main()
