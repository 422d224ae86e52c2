"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import os
from dataclasses import dataclass, field


def _default_pandoc() -> str:
    return os.getenv("PANDOC_PATH") or "pandoc"


@dataclass
class ConverterOptions:
    """
    Options for converting Confluence storage format files into wiki markup.

    :param pandoc: Path to the `pandoc` executable that converts HTML into wiki markup.
    :param raw_suffix: File name extension of raw Confluence storage format files.
    :param intermediate_suffix: File name extension of the rewritten HTML file left next to the raw file.
    :param output_suffix: File name extension of generated wiki markup files.
    """

    pandoc: str = field(default_factory=_default_pandoc)
    raw_suffix: str = ".mraw"
    intermediate_suffix: str = ".mprep"
    output_suffix: str = ".wiki"
