"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""


class ConversionError(RuntimeError):
    "Raised when a Confluence storage format document cannot be converted to wiki markup."
