"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

from urllib.parse import urlparse


def is_absolute_url(url: str) -> bool:
    "True if the string parses as a URL with both a scheme and a network location, e.g. `https://example.com/x.png`."

    try:
        urlparts = urlparse(url)
    except ValueError:
        return False
    return bool(urlparts.scheme) and bool(urlparts.netloc)
