"""
Structured document tree to markdown renderer.

Pure and deterministic: the same tree always produces byte-identical
output. Unknown node kinds degrade to the concatenation of their
rendered children instead of raising.
"""

import re

from granola_sync.core.models import NodeKind, StructuredNode

INDENT_UNIT = "\t"

_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def render(root: StructuredNode | str | None) -> str:
    """Render a structured document (or pre-rendered text) to markdown.

    Args:
        root: A ``doc`` node, a pre-rendered string body, or None.

    Returns:
        Markdown ending in exactly one newline, or ``""`` when there is
        nothing to render.
    """
    if isinstance(root, str):
        return _finalize(root) if root.strip() else ""
    if root is None or root.kind != NodeKind.doc or root.children is None:
        return ""

    parts = [_render_node(child, indent=0, top_level=True) for child in root.children]
    return _finalize("".join(parts))


def _finalize(markdown: str) -> str:
    """Collapse blank-line runs and normalize the trailing newline."""
    return _EXCESS_NEWLINES.sub("\n\n", markdown).rstrip() + "\n"


def _render_children(node: StructuredNode, indent: int) -> str:
    if not node.children:
        return ""
    return "".join(_render_node(child, indent, top_level=False) for child in node.children)


def node_kind(node: StructuredNode) -> NodeKind | None:
    """The node's kind as a ``NodeKind``, or None for kinds outside the set."""
    try:
        return NodeKind(node.kind)
    except ValueError:
        return None


def _render_node(node: StructuredNode, indent: int, top_level: bool) -> str:
    kind = node_kind(node)

    if kind is None or kind == NodeKind.doc:
        if node.children:
            return _render_children(node, indent)
        return node.text or ""
    elif kind == NodeKind.text:
        return node.text or ""
    elif kind == NodeKind.heading:
        level = _heading_level(node)
        text = _render_children(node, indent) if node.children else (node.text or "")
        return f"{'#' * level} {text.strip()}" + ("\n\n" if top_level else "\n")
    elif kind == NodeKind.paragraph:
        return _render_children(node, indent) + ("\n\n" if top_level else "")
    elif kind == NodeKind.bullet_list:
        items = [
            _render_list_item(child, indent)
            for child in node.children or []
            if node_kind(child) == NodeKind.list_item
        ]
        return "\n".join(items) + ("\n\n" if top_level else "")
    elif kind == NodeKind.list_item:
        # Outside a bulletList: nested lists still step one level in
        return "".join(
            _render_node(
                child,
                indent + 1 if node_kind(child) == NodeKind.bullet_list else indent,
                top_level=False,
            )
            for child in node.children or []
        )
    raise AssertionError(f"unhandled node kind {kind!r}")


def _render_list_item(item: StructuredNode, indent: int) -> str:
    """Render one list item: its first inline child, then any nested lists."""
    item_text = ""
    nested: list[str] = []
    seen_text = False

    for child in item.children or []:
        if node_kind(child) == NodeKind.bullet_list:
            nested.append("\n" + _render_node(child, indent + 1, top_level=False))
        elif not seen_text:
            item_text = _render_node(child, indent, top_level=False)
            seen_text = True

    return f"{INDENT_UNIT * indent}- {item_text.strip()}{''.join(nested)}"


def _heading_level(node: StructuredNode) -> int:
    level = (node.attributes or {}).get("level")
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    return 1
