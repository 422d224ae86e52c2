"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import base64
import re
from typing import Iterator

import orjson

# stands in for a literal newline that would otherwise be collapsed by the conversion engine
BREAK = "###BREAK###"


def resolve_breaks(text: str) -> str:
    """
    Replaces each break marker with a newline.

    Must only be invoked on the output of the conversion engine, never on its input.
    """

    return text.replace(BREAK, "\n")


class TableAttributesMarker:
    """
    Stashes HTML table attributes in a text token that the conversion engine passes through verbatim.

    The token consists of letters, digits and the characters `-`, `_` and `=` only.
    """

    PREFIX = "###TABLEATTRIBUTES:"
    SUFFIX = "###"
    PATTERN = re.compile(re.escape(PREFIX) + r"([A-Za-z0-9_\-=]*)" + re.escape(SUFFIX))

    @classmethod
    def encode(cls, attributes: dict[str, str]) -> str:
        payload = base64.urlsafe_b64encode(orjson.dumps(attributes)).decode("ascii")
        return f"{cls.PREFIX}{payload}{cls.SUFFIX}"

    @classmethod
    def decode(cls, token: str) -> dict[str, str]:
        m = cls.PATTERN.fullmatch(token)
        if m is None:
            raise ValueError(f"expected: table attributes marker; got: {token}")
        return cls.decode_payload(m.group(1))

    @staticmethod
    def decode_payload(payload: str) -> dict[str, str]:
        return orjson.loads(base64.urlsafe_b64decode(payload.encode("ascii")))

    @classmethod
    def find(cls, text: str) -> Iterator[re.Match[str]]:
        return cls.PATTERN.finditer(text)
