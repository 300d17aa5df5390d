"""Entry point for the cabinet log triage service."""

import argparse
import logging
import os
import sys

from triage.app import create_app
from triage.config import Config


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Cabinet Log Triage")
    parser.add_argument("--config", type=str, default=os.environ.get("CONFIG_PATH", "config.yaml"))
    parser.add_argument("--host", type=str, default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--debug", action="store_true", default=False)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    config = Config(args.config)

    logging.basicConfig(
        level=getattr(logging, str(config["logging"]["level"]).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        stream=sys.stderr,
    )

    server = config["server"]
    host = args.host if args.host is not None else server["host"]
    port = args.port if args.port is not None else server["port"]
    debug = args.debug or server["debug"]

    app = create_app(config)
    logging.getLogger(__name__).info("Cabinet log triage listening on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
