"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .csf import HTML, ElementType, xpath
from .domain import MacroInvocation
from .extra import override
from .markers import BREAK, TableAttributesMarker
from .xml import append_text, element_to_text, insert_before, move_children, remove_element, replace_with_text

LOGGER = logging.getLogger(__name__)


class Processor(ABC):
    "Mutates a document tree in place."

    @abstractmethod
    def process(self, root: ElementType) -> None: ...


class MacroProcessor(Processor):
    "Converts each occurrence of a macro identified by name."

    macro_name: str

    def _find_macros(self, root: ElementType) -> list[ElementType]:
        query = f"//ac:structured-macro[@ac:name='{self.macro_name}'] | //ac:macro[@ac:name='{self.macro_name}']"
        return xpath(root, query)

    @override
    def process(self, root: ElementType) -> None:
        for node in self._find_macros(root):
            if node.getparent() is None:
                continue
            self.convert(MacroInvocation(node))

    @abstractmethod
    def convert(self, invocation: MacroInvocation) -> None: ...


class ConvertMacroToTemplate(MacroProcessor):
    """
    Converts an admonition macro into a template call that wraps the macro body.

    ```
    <ac:structured-macro ac:name="note">
    <ac:parameter ac:name="title">Caution</ac:parameter>
    <ac:rich-text-body><p>...</p></ac:rich-text-body>
    </ac:structured-macro>
    ```

    becomes

    ```
    <div class="ac-note">{{Note
    |title = Caution
    |body = <p>...</p>}}
    </div>
    ```
    """

    template_name: str

    @override
    def convert(self, invocation: MacroInvocation) -> None:
        node = invocation.node
        container = HTML("div", {"class": f"ac-{self.macro_name}"})

        lines = [f"{{{{{self.template_name}{BREAK}"]
        for name, param in invocation.parameters.items():
            lines.append(f"|{name} = {element_to_text(param)}{BREAK}")
        lines.append("|body = ")
        container.text = "".join(lines)

        body = invocation.rich_text_body
        if body is not None:
            move_children(body, container)
        append_text(container, f"}}}}{BREAK}")

        insert_before(node, container)
        remove_element(node)


class ConvertTipMacro(ConvertMacroToTemplate):
    macro_name = "tip"
    template_name = "Tip"


class ConvertInfoMacro(ConvertMacroToTemplate):
    macro_name = "info"
    template_name = "Info"


class ConvertNoteMacro(ConvertMacroToTemplate):
    macro_name = "note"
    template_name = "Note"


class ConvertWarningMacro(ConvertMacroToTemplate):
    macro_name = "warning"
    template_name = "Warning"


class ConvertStatusMacro(MacroProcessor):
    """
    Converts an inline status lozenge into a template call.

    ```
    <ac:structured-macro ac:name="status">
    <ac:parameter ac:name="colour">Green</ac:parameter>
    <ac:parameter ac:name="title">Done</ac:parameter>
    </ac:structured-macro>
    ```
    """

    macro_name = "status"

    @override
    def convert(self, invocation: MacroInvocation) -> None:
        args = "".join(f"|{name}={element_to_text(param)}" for name, param in invocation.parameters.items())
        replace_with_text(invocation.node, f"{{{{Status{args}}}}}")


class StructuredMacroLayout(MacroProcessor):
    "Converts a layout macro into a `<div>` container holding the macro body."

    def _style(self, invocation: MacroInvocation) -> Optional[str]:
        return None

    def _build(self, invocation: MacroInvocation) -> ElementType:
        container = HTML("div", {"class": f"ac-{self.macro_name}"})
        style = self._style(invocation)
        if style:
            container.set("style", style)

        body = invocation.rich_text_body
        if body is not None:
            move_children(body, container)
        return container

    @override
    def convert(self, invocation: MacroInvocation) -> None:
        insert_before(invocation.node, self._build(invocation))
        remove_element(invocation.node)


class StructuredMacroPanel(StructuredMacroLayout):
    "Converts a panel into a container with an optional title bar and a body."

    macro_name = "panel"

    @override
    def _style(self, invocation: MacroInvocation) -> Optional[str]:
        declarations: list[str] = []
        bg_color = invocation.parameter("bgColor")
        if bg_color:
            declarations.append(f"background-color: {bg_color}")
        border_color = invocation.parameter("borderColor")
        if border_color:
            border_style = invocation.parameter("borderStyle") or "solid"
            declarations.append(f"border: 1px {border_style} {border_color}")
        return "; ".join(declarations) or None

    @override
    def _build(self, invocation: MacroInvocation) -> ElementType:
        container = HTML("div", {"class": "ac-panel"})
        style = self._style(invocation)
        if style:
            container.set("style", style)

        title = invocation.parameter("title")
        if title:
            container.append(HTML("div", {"class": "ac-panel-title"}, title))

        body = HTML("div", {"class": "ac-panel-body"})
        rich_text_body = invocation.rich_text_body
        if rich_text_body is not None:
            move_children(rich_text_body, body)
        container.append(body)
        return container


class StructuredMacroColumn(StructuredMacroLayout):
    macro_name = "column"

    @override
    def _style(self, invocation: MacroInvocation) -> Optional[str]:
        width = invocation.parameter("width")
        if width:
            return f"width: {width}"
        return None


class StructuredMacroSection(StructuredMacroLayout):
    macro_name = "section"


class PreserveTableAttributes(Processor):
    """
    Stashes table attributes that the conversion engine would drop.

    A marker paragraph that encodes the attributes is placed in front of each table. The attributes are
    restored by :class:`conf2mw.postprocess.RestoreTableAttributes` once wiki markup has been generated.
    """

    @override
    def process(self, root: ElementType) -> None:
        for table in xpath(root, "//table"):
            attributes = {str(key): str(value) for key, value in table.attrib.items() if not str(key).startswith("data-")}
            if not attributes:
                continue

            insert_before(table, HTML("p", TableAttributesMarker.encode(attributes)))


class StripLayoutData(Processor):
    "Removes Confluence layout data attributes, which hold JSON that breaks the visual editor of the target wiki."

    @override
    def process(self, root: ElementType) -> None:
        for node in xpath(root, "//*[@data-atlassian-layout]"):
            del node.attrib["data-atlassian-layout"]


def default_processors() -> list[Processor]:
    "Structural processors in the order they run."

    return [
        PreserveTableAttributes(),
        ConvertTipMacro(),
        ConvertInfoMacro(),
        ConvertNoteMacro(),
        ConvertWarningMacro(),
        ConvertStatusMacro(),
        StructuredMacroPanel(),
        StructuredMacroColumn(),
        StructuredMacroSection(),
        StripLayoutData(),
    ]
