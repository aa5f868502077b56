"""
Entry point for the novated lease estimator.

Usage:
    python main.py                          # launches the web app at localhost:5000
    python main.py --cli                    # runs the terminal interface
    python main.py --cli --quote q.json     # analyses a saved JSON quote
    python main.py --quote q.json --share   # prints a shareable link
"""

import argparse
import logging
import sys
from pathlib import Path

import config as cfg


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Novated Lease Estimator (Australian tax year 2025-26)",
    )
    parser.add_argument(
        "--cli",
        action="store_true",
        help="Run in terminal mode instead of launching the web app",
    )
    parser.add_argument(
        "--quote",
        metavar="FILE",
        help="JSON quote to analyse instead of prompting for inputs",
    )
    parser.add_argument(
        "--pdf",
        metavar="PATH",
        help="Also write a PDF report to PATH (CLI mode)",
    )
    parser.add_argument(
        "--share",
        action="store_true",
        help="Print a shareable link for --quote and exit",
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:5000/",
        help="Base URL used by --share",
    )
    parser.add_argument(
        "--store",
        metavar="PATH",
        help=f"Saved quotes file (default: ${cfg.STORE_PATH_ENV} or {cfg.DEFAULT_STORE_PATH})",
    )
    parser.add_argument("--port", type=int, default=5000, help="Web app port")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    quote = None
    if args.quote:
        from quote import QuoteImportError, load_quote_json
        try:
            quote = load_quote_json(Path(args.quote).read_text(encoding="utf-8"))
        except (OSError, QuoteImportError) as exc:
            print(f"Could not load quote: {exc}", file=sys.stderr)
            return 1

    if args.share:
        if quote is None:
            parser.error("--share needs --quote FILE")
        from sharing import share_url
        print(share_url(quote, args.base_url))
        return 0

    if args.cli:
        from cli import run_cli
        run_cli(quote, args.pdf)
    else:
        from app import run_web
        run_web(port=args.port, store_path=args.store)
    return 0


if __name__ == "__main__":
    sys.exit(main())
