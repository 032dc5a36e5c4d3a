"""
hits: run the badge server or inspect its logs.

Usage examples:
  # Dev server on :8000 writing to ./logs
  hits serve

  # Current count of a badge (does not record a hit)
  hits count project/badge.svg

  # Descriptor stored for a fingerprint
  hits visitor 1a2b3c4d5e --log-dir /var/lib/hits
"""

import argparse
import logging
import sys

from .config import Config
from .errors import HitsError
from .hitlog import HitLog, resource_key
from .visitors import VisitorRegistry

log = logging.getLogger("hits")


def cmd_serve(args: argparse.Namespace) -> int:
    from .app import create_app

    app = create_app({"HITS_LOG_DIR": args.log_dir})
    log.info("Serving badges from %s on %s:%d", args.log_dir, args.host, args.port)
    app.run(host=args.host, port=args.port, threaded=True)
    return 0


def cmd_count(args: argparse.Namespace) -> int:
    hit_log = HitLog(args.log_dir)
    try:
        key = resource_key(args.path.strip("/").split("/"))
        if not hit_log.path_for(key).exists():
            print(f"{key}: no hits")
            return 1
        count = hit_log.next_count(key) - 1
    except HitsError as e:
        log.error("%s", e)
        return 1
    print(f"{key}: {count}")
    return 0


def cmd_visitor(args: argparse.Namespace) -> int:
    try:
        canonical = VisitorRegistry(args.log_dir).lookup(args.fingerprint)
    except HitsError as e:
        log.error("%s", e)
        return 1
    if canonical is None:
        print(f"{args.fingerprint}: not found")
        return 1
    print(canonical)
    return 0


# --------- CLI ---------
def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Embeddable hit counter badges.")
    parser.add_argument("--log-dir", default=Config.HITS_LOG_DIR,
                        help="Directory holding hit logs (default: $HITS_LOG_DIR or ./logs)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the development server")
    p_serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    p_serve.add_argument("--port", type=int, default=8000, help="Bind port")
    p_serve.set_defaults(func=cmd_serve)

    p_count = sub.add_parser("count", help="Print the current count of a badge path")
    p_count.add_argument("path", help="Badge path, e.g. project/badge.svg")
    p_count.set_defaults(func=cmd_count)

    p_visitor = sub.add_parser("visitor", help="Print the descriptor stored for a fingerprint")
    p_visitor.add_argument("fingerprint", help="Fingerprint as written in the hit log")
    p_visitor.set_defaults(func=cmd_visitor)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
