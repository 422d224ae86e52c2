"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import logging
from pathlib import Path
from typing import Optional

from .csf import ElementType, ParseError, elements_from_string, elements_to_html, xpath
from .domain import ConversionContext, RewriteRule
from .emoticon import process_emoticon
from .engine import ConversionEngine
from .environment import ConversionError
from .links import Image, Link, LinkResolver
from .lookup import ConversionDataLookup
from .macros import MacroResolver, leading_int, process_task_list
from .normalizer import SourceNormalizer
from .options import ConverterOptions
from .postprocess import TextPostprocessor
from .processors import Processor, default_processors
from .xml import element_to_text, is_attached, remove_element, replace_with_text

LOGGER = logging.getLogger(__name__)

NO_PAGE_ID_FOUND = "<-- No context page id found -->"


def body_content_id_from_path(path: Path) -> int:
    "Extracts the body content ID from a raw file name, e.g. `67856345.mraw`."

    return leading_int(path.name.split(".", 1)[0])


def process_inline_comment_marker(node: ElementType) -> None:
    """
    Replaces an inline comment marker with a template call that holds the commented text.

    ```
    <ac:inline-comment-marker ac:ref="ca3f84d8-5618-4cdb-b8f6-b58f4e29864e">Alternatives</ac:inline-comment-marker>
    ```
    """

    replace_with_text(node, f"{{{{InlineComment|{element_to_text(node)}}}}}")


def process_placeholder(node: ElementType) -> None:
    "Turns an editor placeholder (instructional text) into a comment; drops empty placeholders."

    text = element_to_text(node)
    if text:
        replace_with_text(node, f"<!--{text}-->")
    else:
        remove_element(node)


class RewriteDispatcher:
    """
    Applies rewrite rules to a document tree.

    For each rule, matches are collected before the first handler runs, and handlers are invoked in
    document order. Matches that an earlier handler has detached from the document are skipped.
    """

    rules: list[RewriteRule]

    def __init__(self, rules: list[RewriteRule]) -> None:
        self.rules = rules

    def apply(self, root: ElementType) -> None:
        for rule in self.rules:
            matches = xpath(root, rule.query)
            LOGGER.debug("Found %d match(es) for %s", len(matches), rule.query)
            for match in matches:
                if not is_attached(match, root):
                    continue
                rule.handler(match)


class ConfluenceConverter:
    """
    Converts raw Confluence storage format files into wiki markup.

    :param lookup: Read-only lookup tables shared by all conversions.
    :param engine: Converts the rewritten HTML into wiki markup.
    :param options: Conversion options.
    """

    lookup: ConversionDataLookup
    engine: ConversionEngine
    options: ConverterOptions
    normalizer: SourceNormalizer

    def __init__(
        self,
        lookup: ConversionDataLookup,
        engine: ConversionEngine,
        options: Optional[ConverterOptions] = None,
    ) -> None:
        self.lookup = lookup
        self.engine = engine
        self.options = options or ConverterOptions()
        self.normalizer = SourceNormalizer()

    def create_context(self, path: Path) -> Optional[ConversionContext]:
        "Resolves the page a raw file belongs to, or returns `None` if the page is unknown."

        body_content_id = body_content_id_from_path(path)
        page_id = self.lookup.body_content_id_to_page_id(body_content_id)
        if page_id is None:
            return None

        space_id = self.lookup.page_id_to_space_id(page_id)
        if space_id is None:
            space_id = -1

        page_title = self.lookup.page_id_to_title(page_id)
        if page_title is None:
            LOGGER.info("No current revision found for page %d in %s", page_id, path.name)
            page_title = f"not_current_revision_{page_id}"

        return ConversionContext(
            raw_file=path,
            body_content_id=body_content_id,
            page_id=page_id,
            space_id=space_id,
            page_title=page_title,
            space_prefix=self.lookup.space_id_to_prefix(space_id),
        )

    def make_rules(self, context: ConversionContext) -> list[RewriteRule]:
        "Rewrite rules in the order they are applied."

        links = LinkResolver(self.lookup, context)
        macros = MacroResolver(context, links)
        return [
            RewriteRule("//ac:link", Link(links).process),
            RewriteRule("//ac:image", Image(links).process),
            RewriteRule("//ac:macro", macros.process),
            RewriteRule("//ac:structured-macro", macros.process),
            RewriteRule("//ac:emoticon", process_emoticon),
            RewriteRule("//ac:task-list", process_task_list),
            RewriteRule("//ac:inline-comment-marker", process_inline_comment_marker),
            RewriteRule("//ac:placeholder", process_placeholder),
        ]

    def make_processors(self) -> list[Processor]:
        return default_processors()

    def rewrite(self, context: ConversionContext, content: str) -> ElementType:
        """
        Turns raw Confluence storage format content into a tree of plain HTML and literal wiki markup.

        :param context: The page being converted.
        :param content: Raw Confluence storage format content.
        :returns: The synthetic root element of the rewritten tree.
        """

        categories = self.lookup.title_to_categories(context.page_title)
        root = elements_from_string(self.normalizer.normalize(content, categories))

        RewriteDispatcher(self.make_rules(context)).apply(root)
        for processor in self.make_processors():
            processor.process(root)
        return root

    def convert(self, path: Path) -> str:
        """
        Converts a single raw file into wiki markup.

        The rewritten HTML is left next to the raw file for diagnostic purposes.

        :param path: Path to a raw file whose name is the body content ID, e.g. `67856345.mraw`.
        :returns: Wiki markup.
        """

        LOGGER.info("Converting %s", path)

        context = self.create_context(path)
        if context is None:
            LOGGER.warning("No page found for body content in %s", path.name)
            return NO_PAGE_ID_FOUND

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except UnicodeDecodeError as ex:
            raise ConversionError(path) from ex

        try:
            root = self.rewrite(context, content)
        except (ParseError, ValueError) as ex:
            raise ConversionError(path) from ex

        html_path = path.with_suffix(self.options.intermediate_suffix)
        with open(html_path, "w", encoding="utf-8") as f:
            f.write(elements_to_html(root))

        try:
            wikitext = self.engine.convert(html_path)
        except RuntimeError as ex:
            raise ConversionError(path) from ex

        return TextPostprocessor(self.lookup, context).postprocess(wikitext)
