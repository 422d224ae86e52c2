"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

from .csf import AC_ATTR, ElementType
from .xml import replace_with_text

_EMOTICON_TO_EMOJI = {
    "blue-star": "⭐",
    "cheeky": "\U0001f61b",
    "cross": "❌",
    "heart": "❤️",
    "information": "ℹ️",
    "laugh": "\U0001f600",
    "light-off": "\U0001f4a1",
    "light-on": "\U0001f4a1",
    "minus": "➖",
    "plus": "➕",
    "question": "❓",
    "sad": "\U0001f641",
    "smile": "\U0001f642",
    "thumbs-down": "\U0001f44e",
    "thumbs-up": "\U0001f44d",
    "tick": "✅",
    "warning": "⚠️",
    "wink": "\U0001f609",
    "yellow-star": "⭐",
}


def emoticon_to_emoji(name: str) -> str:
    "Maps a Confluence emoticon name to a Unicode emoji, or to a template call for unknown names."

    return _EMOTICON_TO_EMOJI.get(name) or f"{{{{Emoticon|{name}}}}}"


def process_emoticon(node: ElementType) -> None:
    """
    Replaces an emoticon with its Unicode equivalent.

    ```
    <ac:emoticon ac:name="smile" />
    ```
    """

    replace_with_text(node, emoticon_to_emoji(node.get(AC_ATTR("name"), "")))
