"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import html
import re

import lxml.etree as ET
from lxml.builder import ElementMaker

ElementType = ET._Element  # pyright: ignore [reportPrivateUsage]

# XML namespaces typically associated with Confluence Storage Format documents
NAMESPACES = {
    "ac": "http://atlassian.com/content",
    "ri": "http://atlassian.com/resource/identifier",
}
for key, value in NAMESPACES.items():
    ET.register_namespace(key, value)

HTML = ElementMaker()


class ParseError(RuntimeError):
    pass


def _qname(namespace_uri: str, name: str) -> str:
    return ET.QName(namespace_uri, name).text


def AC_ATTR(name: str) -> str:
    return _qname(NAMESPACES["ac"], name)


def RI_ATTR(name: str) -> str:
    return _qname(NAMESPACES["ri"], name)


def wrap_namespaces(content: str) -> str:
    """
    Wraps Confluence Storage Format content in a synthetic root element.

    The root element declares the namespaces `ac` and `ri` such that the fragment can be parsed as XML.
    """

    ns_attr_list = "".join(f' xmlns:{key}="{value}"' for key, value in NAMESPACES.items())
    return f"<xml{ns_attr_list}>{content}</xml>"


def elements_from_string(content: str) -> ElementType:
    """
    Creates an XML document tree from a namespace-wrapped Confluence Storage Format string.

    The parser recovers from malformed input (e.g. unbalanced tags or stray ampersands) instead of rejecting it.

    :param content: String to parse into XML, as produced by :func:`wrap_namespaces`.
    :returns: An XML document as an element tree.
    """

    parser = ET.XMLParser(
        recover=True,
        huge_tree=True,
        strip_cdata=False,
        resolve_entities=False,
        remove_blank_text=False,
    )

    try:
        root = ET.fromstring(content.encode("utf-8"), parser=parser)
    except ET.XMLSyntaxError as ex:
        raise ParseError() from ex

    if root is None:
        raise ParseError("no document element could be recovered")
    return root


def xpath(node: ElementType, query: str) -> list[ElementType]:
    "Evaluates an XPath expression with Confluence namespace prefixes, and returns matching elements as a list."

    return [item for item in node.xpath(query, namespaces=NAMESPACES) if isinstance(item, ET._Element)]  # pyright: ignore [reportPrivateUsage]


def find(node: ElementType, query: str) -> ElementType | None:
    "Returns the first element matched by an XPath expression, or `None`."

    items = xpath(node, query)
    return items[0] if items else None


_NAMESPACE_DECLARATION = re.compile(r'\s+xmlns:(?:ac|ri)="[^"]*"')


def element_to_xml(node: ElementType) -> str:
    "Serializes an element (excluding its tail) into an XML string, omitting namespace declarations."

    xml = ET.tostring(node, encoding="unicode", method="xml", with_tail=False)
    return _NAMESPACE_DECLARATION.sub("", xml)


def inner_xml(node: ElementType) -> str:
    "Serializes the content of an element into an XML string, omitting the element's own opening and closing tag."

    xml = element_to_xml(node)
    m = re.match(r"^<[^>]*?(?:/>|>(.*)</[^>]+>)$", xml, re.DOTALL)
    if m is None:
        raise ValueError(f"expected: serialized XML element; got: {xml}")
    return m.group(1) or ""


def elements_to_html(root: ElementType) -> str:
    """
    Converts a rewritten element tree into an HTML document to pass to the conversion engine.

    :param root: The synthetic root element holding the page content.
    :returns: HTML document as a string.
    """

    parts = ["<html><head><meta charset=\"utf-8\"/></head><body>"]
    if root.text:
        parts.append(html.escape(root.text, quote=False))
    for child in root:
        # each serialized subtree repeats the namespace declarations in scope
        fragment = ET.tostring(child, encoding="unicode", method="html", with_tail=False)
        parts.append(_NAMESPACE_DECLARATION.sub("", fragment))
        if child.tail:
            parts.append(html.escape(child.tail, quote=False))
    parts.append("</body></html>")
    return "".join(parts)
