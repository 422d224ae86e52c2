"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import logging
import re
from abc import ABC, abstractmethod
from html.entities import name2codepoint
from typing import Iterable, Optional

from .csf import wrap_namespaces
from .extra import override

LOGGER = logging.getLogger(__name__)

# entities an XML parser resolves without a document type definition
_XML_ENTITIES = frozenset(["amp", "lt", "gt", "quot", "apos"])

_ENTITY_PATTERN = re.compile(r"&([A-Za-z][A-Za-z0-9]*);")


class Preprocessor(ABC):
    "Applies a string-level fix to raw Confluence storage format content before it is parsed."

    @abstractmethod
    def preprocess(self, content: str) -> str: ...


class CDATAClosingFixer(Preprocessor):
    "Repairs CDATA section terminators that have been broken up by whitespace, e.g. `]] >`."

    @override
    def preprocess(self, content: str) -> str:
        return re.sub(r"\]\][ \t]+>", "]]>", content)


def replace_named_entities(content: str) -> str:
    """
    Replaces named HTML character entities (e.g. `&nbsp;` or `&auml;`) with the character they stand for.

    The predefined XML entities are kept as-is.
    """

    def _repl(m: re.Match[str]) -> str:
        name = m.group(1)
        if name in _XML_ENTITIES:
            return m.group(0)
        codepoint = name2codepoint.get(name)
        if codepoint is None:
            return m.group(0)
        return chr(codepoint)

    return _ENTITY_PATTERN.sub(_repl, content)


def translate_layout(content: str) -> str:
    """
    Replaces Confluence page layout elements with `<div>` elements.

    Each layout section is preceded by a `{{Layout}}` template marker. The layout type of a section
    (e.g. `two_equal`) becomes an additional class name.
    """

    content = content.replace("<ac:layout-section", "{{Layout}}<ac:layout-section")

    # `ac:layout-section` is the only layout element with an `ac:type` attribute
    content = content.replace('<ac:layout-section ac:type="', '<div class="ac-layout-section ')
    content = content.replace("<ac:layout-section", '<div class="ac-layout-section"')
    content = content.replace("</ac:layout-section", "</div")

    content = content.replace("<ac:layout-cell", '<div class="ac-layout-cell"')
    content = content.replace("</ac:layout-cell", "</div")

    content = content.replace("<ac:layout", '<div class="ac-layout"')
    content = content.replace("</ac:layout", "</div")
    return content


def _ucfirst(text: str) -> str:
    return text[:1].upper() + text[1:]


def append_categories(content: str, categories: Iterable[str]) -> str:
    "Adds a category link for each category just before the closing `</body>` tag (or at the end)."

    markup = "".join(f"[[Category:{_ucfirst(category)}]]\n" for category in categories)
    if not markup:
        return content

    if "</body>" in content:
        return content.replace("</body>", markup + "</body>")
    else:
        return content + markup


class SourceNormalizer:
    "Turns raw Confluence storage format content into a well-formed, namespace-wrapped string."

    preprocessors: list[Preprocessor]

    def __init__(self, preprocessors: Optional[list[Preprocessor]] = None) -> None:
        self.preprocessors = preprocessors if preprocessors is not None else [CDATAClosingFixer()]

    def normalize(self, content: str, categories: Iterable[str] = ()) -> str:
        """
        Normalizes raw content.

        :param content: Raw Confluence storage format content.
        :param categories: Categories to assign to the page.
        :returns: Content wrapped in a root element that declares the Confluence namespaces.
        """

        for preprocessor in self.preprocessors:
            content = preprocessor.preprocess(content)

        content = replace_named_entities(content)
        content = translate_layout(content)
        content = append_categories(content, categories)
        return wrap_namespaces(content)
