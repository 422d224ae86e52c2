"""
Convert Confluence storage format pages to MediaWiki markup.

Rewrites Confluence storage format (XHTML with `ac:` and `ri:` elements) into HTML and wiki markup fragments,
converts HTML to MediaWiki markup with an external engine, and repairs the result.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]

__author__ = "conf2mw contributors"
__copyright__ = "Copyright 2026, conf2mw contributors"
__license__ = "MIT"
__maintainer__ = "conf2mw contributors"
__status__ = "Production"
