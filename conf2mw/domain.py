"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .csf import AC_ATTR, ElementType, find, xpath
from .xml import element_to_text


@dataclass(frozen=True)
class ConversionContext:
    """
    State associated with converting a single raw file.

    :param raw_file: Path to the raw Confluence storage format file.
    :param body_content_id: Body content ID derived from the file name.
    :param page_id: ID of the page the body content belongs to.
    :param space_id: ID of the space the page belongs to, or -1 if unknown.
    :param page_title: Target wiki title of the page, including namespace prefix.
    :param space_prefix: Target wiki namespace prefix of the space, or empty.
    """

    raw_file: Path
    body_content_id: int
    page_id: int
    space_id: int
    page_title: str
    space_prefix: str

    @property
    def context_title(self) -> str:
        "Page title used as context for resolving relative links, with the space prefix removed."

        prefix = f"{self.space_prefix}:"
        if self.space_prefix and self.page_title.startswith(prefix):
            return self.page_title[len(prefix) :]
        return self.page_title

    @property
    def namespace(self) -> str:
        "Namespace portion of the page title (text before the first colon), or empty."

        name, sep, _ = self.page_title.partition(":")
        return name if sep else ""


@dataclass(frozen=True)
class RewriteRule:
    """
    Binds a structural query to a handler invoked for each matching node.

    :param query: XPath expression with `ac` and `ri` namespace prefixes.
    :param handler: Callable that mutates the tree in place, and detaches the matched node.
    """

    query: str
    handler: Callable[[ElementType], None]


class MacroInvocation:
    "A Confluence macro (`ac:macro` or `ac:structured-macro`) with its parameters and body."

    node: ElementType

    def __init__(self, node: ElementType) -> None:
        self.node = node

    @property
    def name(self) -> str:
        return self.node.get(AC_ATTR("name"), "")

    @property
    def parameters(self) -> dict[str, ElementType]:
        "Parameter elements keyed by parameter name, in document order."

        return {param.get(AC_ATTR("name"), ""): param for param in xpath(self.node, "./ac:parameter")}

    def parameter(self, name: str) -> Optional[str]:
        "Text value of a parameter, or `None` if the parameter is absent."

        param = self.parameters.get(name)
        if param is None:
            return None
        return element_to_text(param)

    @property
    def rich_text_body(self) -> Optional[ElementType]:
        return find(self.node, "./ac:rich-text-body")

    @property
    def plain_text_body(self) -> Optional[str]:
        body = find(self.node, "./ac:plain-text-body")
        if body is None:
            return None
        return element_to_text(body)
