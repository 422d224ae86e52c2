"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .converter import ConfluenceConverter
from .environment import ConversionError

LOGGER = logging.getLogger(__name__)


class Application:
    """
    Converts a single raw file or a directory of raw files, writing a wiki markup file for each.

    A file that fails to convert is reported and skipped; it does not stop the conversion of other files.
    """

    converter: ConfluenceConverter
    out_dir: Optional[Path]

    def __init__(self, converter: ConfluenceConverter, out_dir: Optional[Path] = None) -> None:
        self.converter = converter
        self.out_dir = out_dir

    def process(self, path: Path) -> int:
        """
        Converts a file, or all raw files in a directory (non-recursively).

        :returns: Number of files that failed to convert.
        """

        if path.is_dir():
            suffix = self.converter.options.raw_suffix
            files = sorted(entry for entry in path.iterdir() if entry.is_file() and entry.suffix == suffix)
            LOGGER.info("Found %d raw file(s) in %s", len(files), path)
        else:
            files = [path]

        failures = 0
        for file in files:
            if not self.process_file(file):
                failures += 1
        return failures

    def process_file(self, path: Path) -> bool:
        try:
            wikitext = self.converter.convert(path)
        except ConversionError as ex:
            LOGGER.error("Failed to convert %s: %s", path, ex.__cause__ or ex)
            return False
        except OSError as ex:
            LOGGER.error("Failed to read %s: %s", path, ex)
            return False

        out_dir = self.out_dir or path.parent
        os.makedirs(out_dir, exist_ok=True)
        out_path = out_dir / path.with_suffix(self.converter.options.output_suffix).name
        try:
            with open(out_path, "w", encoding="utf-8") as f:
                f.write(wikitext)
        except OSError as ex:
            LOGGER.error("Failed to write %s: %s", out_path, ex)
            return False
        LOGGER.debug("Wrote %s", out_path)
        return True
