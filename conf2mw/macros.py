"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import logging
import re
from typing import Callable

from .csf import HTML, RI_ATTR, ElementType, element_to_xml, find, inner_xml, xpath
from .domain import ConversionContext, MacroInvocation
from .links import LinkResolver
from .markers import BREAK
from .serializer import object_to_json_payload
from .xml import append_text, element_to_text, hoist_children, insert_before, move_children, replace_with_text

LOGGER = logging.getLogger(__name__)

MacroHandler = Callable[[MacroInvocation], str]

# macros converted by a structural processor in a later pass
PROCESSOR_MACROS = frozenset(["info", "note", "tip", "warning", "status", "panel", "section", "column"])

# Confluence code macro language names that differ from the names the target syntax highlighter expects
_LANGUAGES = {
    "actionscript3": "actionscript",
    "c#": "csharp",
    "erl": "erlang",
    "js": "javascript",
    "py": "python",
    "sh": "bash",
    "shell": "bash",
    "vb": "vbnet",
}


def leading_int(text: str) -> int:
    """
    Converts text to an integer the permissive way: the leading integer is taken, anything else yields 0.

    For example, `"2"` gives 2, `"3 levels"` gives 3 and `"all"` gives 0.
    """

    m = re.match(r"^\s*([+-]?\d+)", text)
    return int(m.group(1)) if m else 0


def render_task_list(node: ElementType) -> str:
    """
    Renders a task list as a sequence of template calls.

    ```
    <ac:task-list>
    <ac:task>
    <ac:task-id>29</ac:task-id>
    <ac:task-status>incomplete</ac:task-status>
    <ac:task-body><strong>Edit this home page</strong> - Click <em>Edit</em> ...</ac:task-body>
    </ac:task>
    </ac:task-list>
    ```

    The task body is kept as serialized XML, which is why escaped `<span>` and `<div>` tags are restored
    after conversion.
    """

    lines = [f"{{{{TaskListStart}}}}{BREAK}"]
    for task in xpath(node, ".//ac:task"):
        el_id = find(task, "./ac:task-id")
        el_status = find(task, "./ac:task-status")
        el_body = find(task, "./ac:task-body")

        task_id = element_to_text(el_id) if el_id is not None else "-1"
        status = element_to_text(el_status) if el_status is not None else ""
        body = inner_xml(el_body) if el_body is not None else ""

        lines.append(
            "\n".join(
                [
                    f"{{{{Task{BREAK}",
                    f" | id = {task_id}{BREAK}",
                    f" | status = {status}{BREAK}",
                    f" | body = {body}{BREAK}",
                    f"}}}}{BREAK}",
                ]
            )
        )
    lines.append(f"{{{{TaskListEnd}}}}{BREAK}")
    return "\n".join(lines)


def process_task_list(node: ElementType) -> None:
    replace_with_text(node, render_task_list(node))


class MacroResolver:
    """
    Converts `<ac:macro>` and `<ac:structured-macro>` elements, dispatching on the macro name.

    A handler returns replacement text for the macro element. Handlers that build new elements insert them
    next to the macro element and return an empty string. Macros without a registered handler are replaced
    with a category link that marks the page as containing a broken macro.
    """

    context: ConversionContext
    links: LinkResolver
    handlers: dict[str, MacroHandler]

    def __init__(self, context: ConversionContext, links: LinkResolver) -> None:
        self.context = context
        self.links = links
        self.handlers = {
            "localtabgroup": self._transform_local_tab_group,
            "localtab": self._transform_local_tab,
            "excerpt": self._transform_excerpt,
            "viewdoc": self._transform_view_file,
            "viewxls": self._transform_view_file,
            "viewpdf": self._transform_view_file,
            "children": self._transform_children,
            "gliffy": self._transform_gliffy,
            "widget": self._transform_widget,
            "recently-updated": self._transform_recently_updated,
            "tasklist": self._transform_task_list,
            "toc": self._transform_toc,
            "code": self._transform_code,
            "noformat": self._transform_noformat,
        }

    def register(self, name: str, handler: MacroHandler) -> None:
        self.handlers[name] = handler

    def process(self, node: ElementType) -> None:
        invocation = MacroInvocation(node)
        name = invocation.name

        if name in PROCESSOR_MACROS:
            return

        handler = self.handlers.get(name, self._transform_broken)
        replacement = handler(invocation)
        replace_with_text(node, replacement)

    def _transform_broken(self, invocation: MacroInvocation) -> str:
        LOGGER.warning("Unresolved macro `%s` in page %s:\n%s", invocation.name, self.context.page_title, element_to_xml(invocation.node))
        return f"[[Category:Broken_macro/{invocation.name}]]"

    def _hoist_body(self, invocation: MacroInvocation) -> None:
        body = invocation.rich_text_body
        if body is not None:
            hoist_children(body, invocation.node)

    def _transform_local_tab_group(self, invocation: MacroInvocation) -> str:
        """
        Replaces a tab group with its content, appending a tab container marker.

        ```
        <ac:macro ac:name="localtabgroup">
        <ac:rich-text-body>
        <ac:macro ac:name="localtab">...</ac:macro>
        </ac:rich-text-body>
        </ac:macro>
        ```
        """

        parent = invocation.node.getparent()
        if parent is not None:
            append_text(parent, "<headertabs />")
        self._hoist_body(invocation)
        return ""

    def _transform_local_tab(self, invocation: MacroInvocation) -> str:
        "Replaces a tab with a heading (from the parameter `title`) followed by the tab content."

        title = invocation.parameter("title")
        if title is not None:
            insert_before(invocation.node, HTML("h1", title))
        self._hoist_body(invocation)
        return ""

    def _transform_excerpt(self, invocation: MacroInvocation) -> str:
        # inline and block mode are rendered the same way
        container = HTML("div", {"class": "ac-excerpt"})
        insert_before(invocation.node, container)

        body = invocation.rich_text_body
        if body is not None:
            move_children(body, container)
        return ""

    def _transform_view_file(self, invocation: MacroInvocation) -> str:
        "Replaces a file viewer (e.g. `viewpdf`) with a link to the file."

        name_param = invocation.parameters.get("name")
        if name_param is None:
            return ""

        target = element_to_text(name_param)
        if not target:
            # target is sometimes given as an attribute of a nested <ri:attachment> element
            attachment = find(invocation.node, "./ac:parameter/ri:attachment")
            if attachment is not None:
                target = attachment.get(RI_ATTR("filename"), "")

        container = HTML("span", {"class": f"ac-{invocation.name}"}, self.links.make_media_link([target]))
        insert_before(invocation.node, container)
        return ""

    def _transform_children(self, invocation: MacroInvocation) -> str:
        "Replaces a child page listing with a sub-page list template call."

        depth = 1
        depth_param = invocation.parameter("depth")
        if depth_param is not None:
            depth = leading_int(depth_param)

        container = HTML(
            "div",
            {"class": f"subpagelist subpagelist-depth-{depth}"},
            f"{{{{SubpageList|page={self.context.page_title}|depth={depth}}}}}",
        )
        insert_before(invocation.node, container)
        return ""

    def _transform_gliffy(self, invocation: MacroInvocation) -> str:
        "Replaces a Gliffy diagram with its image rendition, which has been exported as an attachment."

        name = invocation.parameter("name")
        if not name:
            return ""
        return self.links.make_image_link([f"{name}.png"])

    def _transform_widget(self, invocation: MacroInvocation) -> str:
        params: dict[str, str] = {"url": ""}
        for param_name, param in invocation.parameters.items():
            params[param_name] = element_to_text(param)

        container = HTML(
            "div",
            {"class": "ac-widget", "data-params": object_to_json_payload(params).decode("utf-8")},
            params["url"],
        )
        insert_before(invocation.node, container)
        return ""

    def _transform_recently_updated(self, invocation: MacroInvocation) -> str:
        return f"{{{{RecentlyUpdated|namespace={self.context.namespace}}}}}"

    def _transform_task_list(self, invocation: MacroInvocation) -> str:
        return render_task_list(invocation.node)

    def _transform_toc(self, invocation: MacroInvocation) -> str:
        return f"\n__TOC__\n{BREAK}"

    def _transform_code(self, invocation: MacroInvocation) -> str:
        """
        Replaces a code block macro with a preformatted block that carries the language as a class.

        ```
        <ac:structured-macro ac:name="code">
        <ac:parameter ac:name="language">python</ac:parameter>
        <ac:plain-text-body><![CDATA[print("Hello")]]></ac:plain-text-body>
        </ac:structured-macro>
        ```
        """

        language = (invocation.parameter("language") or "").strip().lower()
        attrs = {"class": _LANGUAGES.get(language, language)} if language else {}
        insert_before(invocation.node, HTML("pre", attrs, invocation.plain_text_body or ""))
        return ""

    def _transform_noformat(self, invocation: MacroInvocation) -> str:
        insert_before(invocation.node, HTML("pre", invocation.plain_text_body or ""))
        return ""
