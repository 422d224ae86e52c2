"""
Convert Confluence storage format pages to MediaWiki markup.

Rewrites Confluence storage format files (as exported from the Confluence database) into HTML, converts HTML
to MediaWiki markup with Pandoc, and repairs the result.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import argparse
import logging
import os.path
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .application import Application
from .converter import ConfluenceConverter
from .engine import PandocEngine
from .lookup import ConversionDataLookup, LookupTables
from .options import ConverterOptions


class Arguments(argparse.Namespace):
    rawpath: Path
    lookup: Optional[Path]
    out_dir: Optional[Path]
    pandoc: Optional[str]
    loglevel: str


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser()
    parser.prog = os.path.basename(os.path.dirname(__file__))
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("rawpath", type=Path, help="Path to a raw Confluence storage format file or a directory of such files.")
    parser.add_argument(
        "--lookup",
        type=Path,
        help="JSON file with lookup tables (page titles, spaces, attachments, categories) from earlier migration steps.",
    )
    parser.add_argument("-o", "--out-dir", dest="out_dir", type=Path, help="Directory to write wiki markup files to (default: next to input).")
    parser.add_argument("--pandoc", help="Path to the Pandoc executable (default: $PANDOC_PATH or 'pandoc').")
    parser.add_argument(
        "-l",
        "--loglevel",
        choices=[
            logging.getLevelName(level).lower()
            for level in (
                logging.DEBUG,
                logging.INFO,
                logging.WARN,
                logging.ERROR,
                logging.CRITICAL,
            )
        ],
        default=logging.getLevelName(logging.INFO).lower(),
        help="Use this option to set the log verbosity.",
    )
    return parser


def main() -> None:
    parser = get_parser()
    args = Arguments()
    parser.parse_args(namespace=args)

    logging.basicConfig(
        level=getattr(logging, args.loglevel.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(funcName)s [%(lineno)d] - %(message)s",
    )

    options = ConverterOptions()
    if args.pandoc:
        options.pandoc = args.pandoc

    engine = PandocEngine(options.pandoc)
    if not engine.is_available():
        parser.error(f"Pandoc executable not found: {options.pandoc}")

    tables = LookupTables.load(args.lookup) if args.lookup else LookupTables()
    converter = ConfluenceConverter(ConversionDataLookup(tables), engine, options)

    failures = Application(converter, args.out_dir).process(args.rawpath)
    if failures:
        logging.error("%d file(s) failed to convert", failures)
        sys.exit(1)


if __name__ == "__main__":
    main()
