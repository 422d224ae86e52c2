"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

from typing import Optional

import lxml.etree as ET

ElementType = ET._Element  # pyright: ignore [reportPrivateUsage]


def _append_text(node: ElementType, text: str) -> None:
    "Appends text immediately before `node`, i.e. to the tail of the preceding sibling or the text of the parent."

    if not text:
        return

    parent = node.getparent()
    if parent is None:
        raise ValueError("expected: element with a parent")

    previous = node.getprevious()
    if previous is not None:
        previous.tail = (previous.tail or "") + text
    else:
        parent.text = (parent.text or "") + text


def insert_text_before(node: ElementType, text: str) -> None:
    "Inserts a text node in front of an element."

    _append_text(node, text)


def append_text(parent: ElementType, text: str) -> None:
    "Adds a text node as the last child of an element."

    if len(parent) > 0:
        last = parent[-1]
        last.tail = (last.tail or "") + text
    else:
        parent.text = (parent.text or "") + text


def insert_before(node: ElementType, new: ElementType) -> None:
    "Inserts an element as the preceding sibling of `node`. The new element takes over no text."

    parent = node.getparent()
    if parent is None:
        raise ValueError("expected: element with a parent")
    parent.insert(parent.index(node), new)


def remove_element(node: ElementType) -> None:
    "Detaches an element from its parent, keeping the text that follows the element."

    parent = node.getparent()
    if parent is None:
        return

    tail = node.tail
    node.tail = None
    if tail:
        _append_text(node, tail)
    parent.remove(node)


def replace_with_text(node: ElementType, text: str) -> None:
    "Replaces an element with a text node, keeping the text that follows the element."

    if node.getparent() is None:
        return

    _append_text(node, text)
    remove_element(node)


def hoist_children(source: ElementType, target: ElementType) -> None:
    """
    Moves the content of `source` (leading text and child elements) in front of `target`.

    :param source: Element whose content to move. Left empty.
    :param target: Element in front of which content is inserted.
    """

    if source.text:
        insert_text_before(target, source.text)
        source.text = None

    for child in list(source):
        insert_before(target, child)


def move_children(source: ElementType, target: ElementType) -> None:
    "Appends the content of `source` (leading text and child elements) to `target`."

    if source.text:
        if len(target) > 0:
            target[-1].tail = (target[-1].tail or "") + source.text
        else:
            target.text = (target.text or "") + source.text
        source.text = None

    for child in list(source):
        target.append(child)


def is_attached(node: ElementType, root: ElementType) -> bool:
    "True if the element is (still) part of the document tree rooted at `root`."

    current: Optional[ElementType] = node
    while current is not None:
        if current is root:
            return True
        current = current.getparent()
    return False


def element_to_text(node: ElementType) -> str:
    "Returns all text contained in an element as a concatenated string."

    return "".join(node.itertext())
