"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import html
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

from .domain import ConversionContext
from .extra import override
from .lookup import ConversionDataLookup
from .markers import TableAttributesMarker, resolve_breaks
from .uri import is_absolute_url

LOGGER = logging.getLogger(__name__)


class Postprocessor(ABC):
    "Repairs wiki markup produced by the conversion engine."

    @abstractmethod
    def postprocess(self, text: str) -> str: ...


_ATTRIBUTE_PATTERN = re.compile(r'([A-Za-z_][\w:.-]*)\s*=\s*"([^"]*)"')


def _merge_attributes(generated: str, stashed: dict[str, str]) -> str:
    attributes: dict[str, str] = {name: value for name, value in _ATTRIBUTE_PATTERN.findall(generated)}
    for name, value in stashed.items():
        if name == "class" and attributes.get("class"):
            classes = attributes["class"].split()
            classes.extend(c for c in value.split() if c not in classes)
            attributes["class"] = " ".join(classes)
        else:
            attributes[name] = value

    return "".join(f' {name}="{html.escape(value, quote=True)}"' for name, value in attributes.items())


class RestoreTableAttributes(Postprocessor):
    "Applies table attributes stashed by `PreserveTableAttributes` to the wiki table that follows the marker."

    # the conversion engine escapes the leading `#` of a paragraph
    _MARKER = r"^[ \t]*\\?" + TableAttributesMarker.PATTERN.pattern + r"[ \t]*"
    _PATTERN = re.compile(_MARKER + r"\n(?:[ \t]*\n)*\{\|([^\n]*)$", re.MULTILINE)
    _ORPHAN = re.compile(_MARKER + r"\n?", re.MULTILINE)

    @override
    def postprocess(self, text: str) -> str:
        def _repl(m: re.Match[str]) -> str:
            stashed = TableAttributesMarker.decode_payload(m.group(1))
            return "{|" + _merge_attributes(m.group(2), stashed)

        text = self._PATTERN.sub(_repl, text)

        # drop markers not followed by a table
        return self._ORPHAN.sub("", text)


class FixLineBreakInHeadings(Postprocessor):
    "Removes line breaks from section headings, which would otherwise break the heading markup."

    # a line break may also be followed by a newline, continuing the heading on the next line
    _HEADING = re.compile(r"^(=+)((?:[^\n]*?<br\s*/?>[ \t]*\n)*[^\n]*?)(=+)[ \t]*$", re.MULTILINE)

    @override
    def postprocess(self, text: str) -> str:
        def _repl(m: re.Match[str]) -> str:
            content = re.sub(r"\s*<br\s*/?>\s*", " ", m.group(2))
            return f"{m.group(1)}{content}{m.group(3)}"

        return self._HEADING.sub(_repl, text)


# patterns of escaped tags to restore (and nothing else, to keep user content escaped)
_DECODE_PATTERNS = [
    # task lists emit serialized XML as text
    re.compile(r"&lt;span.*?&gt;", re.IGNORECASE | re.DOTALL),
    re.compile(r"&lt;/span&gt;", re.IGNORECASE | re.DOTALL),
    re.compile(r"&lt;div.*?&gt;", re.IGNORECASE | re.DOTALL),
    re.compile(r"&lt;/div&gt;", re.IGNORECASE | re.DOTALL),
    re.compile(r"&lt;headertabs /&gt;", re.IGNORECASE | re.DOTALL),
    re.compile(r"&lt;subpages(.*?)/&gt;", re.IGNORECASE | re.DOTALL),
    re.compile(r"&lt;img(.*?)/&gt;", re.DOTALL),
]


def decode_known_tags(text: str) -> str:
    "Unescapes HTML tags in wiki markup that match a fixed list of patterns."

    for pattern in _DECODE_PATTERNS:
        text = pattern.sub(lambda m: html.unescape(m.group(0)), text)
    return text


def find_embedded_files(text: str) -> list[str]:
    "Lists the targets of all file and media links in wiki markup."

    return re.findall(r"\[\[\s*(?:File|Media):(.*?)\s*[|*\]]", text, flags=re.IGNORECASE)


class TextPostprocessor:
    """
    Runs the ordered text passes over wiki markup generated for a single page.

    :param lookup: Lookup tables for renamed titles and attachments.
    :param context: The page being converted.
    :param postprocessors: Repair passes that run first.
    """

    lookup: ConversionDataLookup
    context: ConversionContext
    postprocessors: list[Postprocessor]

    def __init__(
        self,
        lookup: ConversionDataLookup,
        context: ConversionContext,
        postprocessors: Optional[list[Postprocessor]] = None,
    ) -> None:
        self.lookup = lookup
        self.context = context
        if postprocessors is not None:
            self.postprocessors = postprocessors
        else:
            self.postprocessors = [RestoreTableAttributes(), FixLineBreakInHeadings()]

    def postprocess(self, text: str) -> str:
        for postprocessor in self.postprocessors:
            text = postprocessor.postprocess(text)

        text = self.remap_media_links(text)
        text = self.repair_external_images(text)
        text = self.normalize(text)
        text = decode_known_tags(text)
        text = self.append_attachments(text)
        text += f"\n <!-- From bodyContent {self.context.raw_file.name} -->"
        return text

    def remap_media_links(self, text: str) -> str:
        "Replaces the target of media links whose file has been renamed."

        def _repl(m: re.Match[str]) -> str:
            new_title = self.lookup.old_title_to_new_title(m.group(1))
            if new_title is None:
                return m.group(0)
            return f"[[Media:{new_title}{m.group(2)}]]"

        return re.sub(r"\[\[Media:([^|\]]*)((?:\|[^\]]*)?)\]\]", _repl, text)

    @staticmethod
    def repair_external_images(text: str) -> str:
        """
        Turns file links with an absolute URL target back into HTML images.

        The conversion engine renders `<img src="https://...">` as `[[File:https://...]]`, which is not valid.
        """

        def _repl(m: re.Match[str]) -> str:
            url, _, _ = m.group(1).partition("|")
            if not is_absolute_url(url):
                return m.group(0)
            return f"<img src='{url}' />"

        return re.sub(r"\[\[File:(https?://[^\]]*)\]\]", _repl, text)

    @staticmethod
    def normalize(text: str) -> str:
        "Resolves break markers, and cleans up artifacts of template markup formatting."

        # carriage returns would be encoded as `&#xD;` in the wiki import file
        text = text.replace("\r", "")
        text = resolve_breaks(text)
        text = text.replace("\n {{", "\n{{")
        text = text.replace("\n }}", "\n}}")
        text = text.replace("\n- ", "\n* ")
        return text

    def append_attachments(self, text: str) -> str:
        "Appends a list of attachments of the page that are not referenced in the page body."

        attachments = self.lookup.title_to_attachments(self.context.page_title)
        if not attachments:
            return text

        referenced = set(find_embedded_files(text))
        unreferenced = [attachment for attachment in attachments if attachment not in referenced]
        if not unreferenced:
            return text

        LOGGER.debug("Listing %d unreferenced attachment(s) for page %s", len(unreferenced), self.context.page_title)
        lines = ["", "{{AttachmentsSectionStart}}"]
        lines.extend(f"* [[Media:{attachment}]]" for attachment in unreferenced)
        lines.extend(["", "{{AttachmentsSectionEnd}}", ""])
        return text + "\n".join(lines)
