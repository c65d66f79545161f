#!/usr/bin/env python3
"""Command-line interface for laxhtml."""

from __future__ import annotations

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import NoReturn

from . import LaxHTML
from .options import IgnoreBlockMode, ParseOptions
from .selector import SelectorError, parse_selector


def _get_version() -> str:
    try:
        return version("laxhtml")
    except PackageNotFoundError:  # pragma: no cover
        return "dev"


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="laxhtml",
        description="Parse (possibly malformed) HTML and output markup or plain text.",
        epilog=(
            "Examples:\n"
            "  laxhtml page.html\n"
            "  cat page.html | laxhtml -\n"
            "  laxhtml page.html --selector 'div.post p' --format text\n"
            "  laxhtml page.html --selector 'a' --index 0 --format inner\n"
            "\n"
            "If you don't have the 'laxhtml' command available, use:\n"
            "  python -m laxhtml ...\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "path",
        nargs="?",
        help="HTML file to parse, or '-' to read from stdin",
    )
    parser.add_argument(
        "--selector",
        help="CSS selector for choosing nodes (defaults to the document root)",
    )
    parser.add_argument(
        "--index",
        type=int,
        help="Only output the match at this index (negative counts from the end)",
    )
    parser.add_argument(
        "--format",
        choices=["html", "inner", "text"],
        default="html",
        help="Output format: outer markup, inner markup or plain text (default: html)",
    )
    parser.add_argument(
        "--keep-newlines",
        action="store_true",
        help="Do not turn line breaks outside scripts and styles into spaces",
    )
    parser.add_argument(
        "--ignore-blocks",
        choices=[mode.value for mode in IgnoreBlockMode],
        default=IgnoreBlockMode.LEGACY.value,
        help="How {template} regions are handled (default: legacy)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"laxhtml {_get_version()}",
    )

    args = parser.parse_args(argv)

    if not args.path:
        parser.print_help(sys.stderr)
        raise SystemExit(1)

    return args


def _read_html(path: str) -> str:
    if path == "-":
        return sys.stdin.read()

    return Path(path).read_text(encoding="utf-8")


def main(argv: list[str] | None = None) -> NoReturn | None:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    options = ParseOptions(
        normalize_line_endings=not args.keep_newlines,
        ignore_block_mode=IgnoreBlockMode(args.ignore_blocks),
        inline_break_text="\n",
        block_break_text="\n",
    )
    doc = LaxHTML(_read_html(args.path), options)

    if args.selector:
        # find() treats a bad selector as matching nothing; report it instead.
        try:
            parse_selector(args.selector)
        except SelectorError as e:
            print(str(e), file=sys.stderr)
            raise SystemExit(2) from e
        nodes = doc.query(args.selector)
    else:
        nodes = [doc.root]

    if args.index is not None:
        index = args.index + len(nodes) if args.index < 0 else args.index
        nodes = [nodes[index]] if 0 <= index < len(nodes) else []

    if not nodes:
        raise SystemExit(1)

    if args.format == "html":
        outputs = [node.outertext() for node in nodes]
    elif args.format == "inner":
        outputs = [node.innertext() for node in nodes]
    else:
        outputs = [node.plaintext() for node in nodes]
    sys.stdout.write("\n".join(outputs))
    sys.stdout.write("\n")
    return None


if __name__ == "__main__":
    main()
