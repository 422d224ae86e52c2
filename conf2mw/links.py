"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import logging
from typing import Optional

from .csf import AC_ATTR, RI_ATTR, ElementType, find
from .domain import ConversionContext
from .lookup import ConversionDataLookup
from .xml import element_to_text, replace_with_text

LOGGER = logging.getLogger(__name__)


class LinkResolver:
    """
    Resolves Confluence resource identifiers (pages, attachments, URLs, users and spaces) into wiki links.

    Targets without an explicit page are resolved relative to the current page. The current page is
    identified by its title with the space prefix removed (see :attr:`ConversionContext.context_title`).
    """

    lookup: ConversionDataLookup
    context: ConversionContext

    def __init__(self, lookup: ConversionDataLookup, context: ConversionContext) -> None:
        self.lookup = lookup
        self.context = context

    def space_id(self, space_key: Optional[str]) -> int:
        if space_key:
            space_id = self.lookup.space_key_to_space_id(space_key)
            if space_id is not None:
                return space_id
            LOGGER.debug("Unknown space key: %s", space_key)
        return self.context.space_id

    def page_title(self, space_key: Optional[str], content_title: Optional[str]) -> str:
        "Target wiki title of a page identified by space key and Confluence title."

        if not content_title:
            return self.context.page_title

        prefix = self.lookup.space_id_to_prefix(self.space_id(space_key))
        title = f"{prefix}:{content_title}" if prefix else content_title
        return self.lookup.old_title_to_new_title(title) or title

    def file_title(self, filename: str, page: Optional[ElementType] = None) -> str:
        """
        Target wiki file title of an attachment.

        :param filename: Original file name of the attachment.
        :param page: A `<ri:page>` element identifying the page the attachment belongs to; current page if omitted.
        """

        if page is not None:
            space_id = self.space_id(page.get(RI_ATTR("space-key")))
            page_title = page.get(RI_ATTR("content-title")) or self.context.context_title
        else:
            space_id = self.context.space_id
            page_title = self.context.context_title
        return self.lookup.attachment_target_title(space_id, page_title, filename)

    def make_media_link(self, params: list[str]) -> str:
        """
        Builds a link to a file (without embedding the file).

        :param params: Attachment file name followed by optional link parameters (e.g. label).
        :returns: Wiki markup, e.g. `[[Media:Page_file.pdf|label]]`.
        """

        if not params:
            raise ValueError("expected: at least a file name")

        target, *rest = params
        return "[[" + "|".join([f"Media:{self.file_title(target)}", *rest]) + "]]"

    def make_image_link(self, params: list[str]) -> str:
        """
        Builds markup that embeds an image attached to the current page.

        :param params: Attachment file name followed by optional display parameters (e.g. `300px`).
        :returns: Wiki markup, e.g. `[[File:Page_image.png|300px]]`.
        """

        if not params:
            raise ValueError("expected: at least a file name")

        target, *rest = params
        return "[[" + "|".join([f"File:{self.file_title(target)}", *rest]) + "]]"


def _link_label(node: ElementType) -> Optional[str]:
    body = find(node, "./ac:plain-text-link-body")
    if body is None:
        body = find(node, "./ac:link-body")
    if body is None:
        return None

    label = element_to_text(body).strip()
    return label or None


class Link:
    """
    Converts `<ac:link>` elements.

    ```
    <ac:link ac:anchor="section">
      <ri:page ri:space-key="DOCS" ri:content-title="Installation" />
      <ac:plain-text-link-body><![CDATA[installing]]></ac:plain-text-link-body>
    </ac:link>
    ```
    """

    resolver: LinkResolver

    def __init__(self, resolver: LinkResolver) -> None:
        self.resolver = resolver

    def make_link(self, node: ElementType) -> str:
        "Builds wiki markup for a link element."

        label = _link_label(node)
        anchor = node.get(AC_ATTR("anchor"))
        fragment = f"#{anchor}" if anchor else ""

        url = find(node, "./ri:url")
        if url is not None:
            value = url.get(RI_ATTR("value"), "")
            return f"[{value} {label}]" if label else f"[{value}]"

        attachment = find(node, "./ri:attachment")
        if attachment is not None:
            filename = attachment.get(RI_ATTR("filename"), "")
            target = f"Media:{self.resolver.file_title(filename, find(attachment, './ri:page'))}"
            return self._wiki_link(target, label)

        page = find(node, "./ri:page")
        if page is None:
            page = find(node, "./ri:blog-post")
        if page is not None:
            title = page.get(RI_ATTR("content-title"))
            if not title and anchor:
                return self._wiki_link(fragment, label)
            target = self.resolver.page_title(page.get(RI_ATTR("space-key")), title)
            return self._wiki_link(target + fragment, label)

        user = find(node, "./ri:user")
        if user is not None:
            name = user.get(RI_ATTR("username")) or user.get(RI_ATTR("userkey")) or user.get(RI_ATTR("account-id")) or ""
            return self._wiki_link(f"User:{name}", label)

        space = find(node, "./ri:space")
        if space is not None:
            prefix = self.resolver.lookup.space_id_to_prefix(self.resolver.space_id(space.get(RI_ATTR("space-key"))))
            target = f"{prefix}:Main_Page" if prefix else "Main_Page"
            return self._wiki_link(target, label)

        if anchor:
            return self._wiki_link(fragment, label)

        LOGGER.debug("Link without a resolvable target in page %s", self.resolver.context.page_title)
        return label or ""

    @staticmethod
    def _wiki_link(target: str, label: Optional[str]) -> str:
        if label and label != target:
            return f"[[{target}|{label}]]"
        return f"[[{target}]]"

    def process(self, node: ElementType) -> None:
        replace_with_text(node, self.make_link(node))


class Image:
    """
    Converts `<ac:image>` elements.

    ```
    <ac:image ac:width="300" ac:align="center">
      <ri:attachment ri:filename="diagram.png" />
    </ac:image>
    ```
    """

    resolver: LinkResolver

    def __init__(self, resolver: LinkResolver) -> None:
        self.resolver = resolver

    @staticmethod
    def _display_params(node: ElementType) -> list[str]:
        params: list[str] = []
        if node.get(AC_ATTR("thumbnail")) == "true":
            params.append("thumb")
        width = node.get(AC_ATTR("width"))
        height = node.get(AC_ATTR("height"))
        if width and height:
            params.append(f"{width}x{height}px")
        elif width:
            params.append(f"{width}px")
        elif height:
            params.append(f"x{height}px")
        align = node.get(AC_ATTR("align"))
        if align in ("left", "right", "center"):
            params.append(align)
        alt = node.get(AC_ATTR("alt"))
        if alt:
            params.append(f"alt={alt}")
        return params

    def make_image_link(self, node: ElementType) -> str:
        "Builds wiki markup for an image element."

        params = self._display_params(node)

        url = find(node, "./ri:url")
        if url is not None:
            return "[[" + "|".join([f"File:{url.get(RI_ATTR('value'), '')}", *params]) + "]]"

        attachment = find(node, "./ri:attachment")
        if attachment is not None:
            filename = attachment.get(RI_ATTR("filename"), "")
            title = self.resolver.file_title(filename, find(attachment, "./ri:page"))
            return "[[" + "|".join([f"File:{title}", *params]) + "]]"

        LOGGER.debug("Image without a resolvable source in page %s", self.resolver.context.page_title)
        return ""

    def process(self, node: ElementType) -> None:
        replace_with_text(node, self.make_image_link(node))
