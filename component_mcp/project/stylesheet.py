"""A small CSS document model.

Only what the stylesheet updaters need is modelled: blocks (rules and
at-rule blocks), declarations, bodiless at-rule statements and comments.
Whitespace is normalised on output (two-space indentation, one blank line
between top-level blocks), so ``render(parse(render(doc)))`` is stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass
class Declaration:
    prop: str
    value: str


@dataclass
class Statement:
    """A bodiless at-rule such as ``@import "tailwindcss"`` or ``@apply border-border``."""

    text: str


@dataclass
class Comment:
    text: str


@dataclass
class Block:
    selector: str
    children: list["Node"] = field(default_factory=list)

    # -- lookup -------------------------------------------------------------

    def find(self, selector: str) -> "Block | None":
        return find_block(self.children, selector)

    def ensure(self, selector: str) -> "Block":
        return ensure_block(self.children, selector)

    def get(self, prop: str) -> Declaration | None:
        for node in self.children:
            if isinstance(node, Declaration) and node.prop == prop:
                return node
        return None

    def set(self, prop: str, value: str, overwrite: bool = True) -> bool:
        """Set a declaration; returns ``True`` when the block changed."""
        existing = self.get(prop)
        if existing is None:
            self.children.append(Declaration(prop, value))
            return True
        if overwrite and existing.value != value:
            existing.value = value
            return True
        return False

    def remove(self, prop: str) -> bool:
        before = len(self.children)
        self.children = [n for n in self.children if not (isinstance(n, Declaration) and n.prop == prop)]
        return len(self.children) != before

    def has_statement(self, text: str) -> bool:
        return has_statement(self.children, text)


Node = Union[Declaration, Statement, Comment, Block]


@dataclass
class Stylesheet:
    nodes: list[Node] = field(default_factory=list)

    def find(self, selector: str) -> Block | None:
        return find_block(self.nodes, selector)

    def ensure(self, selector: str, index: int | None = None) -> Block:
        return ensure_block(self.nodes, selector, index)

    def has_statement(self, text: str) -> bool:
        return has_statement(self.nodes, text)

    def insert_after_imports(self, node: Node) -> None:
        """Insert *node* after the leading ``@import`` / ``@plugin`` / ``@custom-variant`` statements."""
        position = 0
        for index, existing in enumerate(self.nodes):
            if isinstance(existing, Statement) and existing.text.startswith(("@import", "@plugin", "@custom-variant")):
                position = index + 1
            elif isinstance(existing, Comment) and position == index:
                position = index + 1
        self.nodes.insert(position, node)

    def render(self) -> str:
        return render_nodes(self.nodes, 0) + "\n"


# ---------------------------------------------------------------------------
# Helpers on node lists
# ---------------------------------------------------------------------------


def _normalise_selector(selector: str) -> str:
    return " ".join(selector.split())


def find_block(nodes: list[Node], selector: str) -> Block | None:
    wanted = _normalise_selector(selector)
    for node in nodes:
        if isinstance(node, Block) and _normalise_selector(node.selector) == wanted:
            return node
    return None


def ensure_block(nodes: list[Node], selector: str, index: int | None = None) -> Block:
    block = find_block(nodes, selector)
    if block is None:
        block = Block(selector)
        if index is None:
            nodes.append(block)
        else:
            nodes.insert(index, block)
    return block


def has_statement(nodes: list[Node], text: str) -> bool:
    wanted = " ".join(text.split())
    return any(isinstance(n, Statement) and " ".join(n.text.split()) == wanted for n in nodes)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _flush(buffer: list[str], target: list[Node]) -> None:
    text = "".join(buffer).strip()
    buffer.clear()
    if not text:
        return
    if text.startswith("@"):
        target.append(Statement(text))
        return
    prop, sep, value = text.partition(":")
    if sep:
        target.append(Declaration(prop.strip(), value.strip()))
    else:
        target.append(Statement(text))


def parse(text: str) -> Stylesheet:
    """Parse CSS text into a :class:`Stylesheet`; unbalanced input is closed silently."""
    root: list[Node] = []
    stack: list[list[Node]] = [root]
    buffer: list[str] = []
    paren_depth = 0
    i, n = 0, len(text)

    while i < n:
        ch = text[i]
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = n if end == -1 else end
            if not "".join(buffer).strip():
                stack[-1].append(Comment(text[i + 2 : end].strip()))
            i = end + 2
            continue
        if ch in "\"'":
            end = i + 1
            while end < n and text[end] != ch:
                end += 2 if text[end] == "\\" else 1
            buffer.append(text[i : end + 1])
            i = end + 1
            continue
        if ch == "(":
            paren_depth += 1
        elif ch == ")":
            paren_depth = max(0, paren_depth - 1)
        elif paren_depth == 0 and ch == "{":
            block = Block(_normalise_selector("".join(buffer)))
            buffer.clear()
            stack[-1].append(block)
            stack.append(block.children)
            i += 1
            continue
        elif paren_depth == 0 and ch == "}":
            _flush(buffer, stack[-1])
            if len(stack) > 1:
                stack.pop()
            i += 1
            continue
        elif paren_depth == 0 and ch == ";":
            _flush(buffer, stack[-1])
            i += 1
            continue
        buffer.append(ch)
        i += 1

    _flush(buffer, stack[-1])
    return Stylesheet(root)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_nodes(nodes: list[Node], depth: int) -> str:
    pad = "  " * depth
    lines: list[str] = []
    previous: Node | None = None
    for node in nodes:
        if depth == 0 and previous is not None and (isinstance(node, Block) or isinstance(previous, Block)):
            lines.append("")
        if isinstance(node, Declaration):
            lines.append(f"{pad}{node.prop}: {node.value};")
        elif isinstance(node, Statement):
            lines.append(f"{pad}{node.text};")
        elif isinstance(node, Comment):
            lines.append(f"{pad}/* {node.text} */")
        else:
            if node.children:
                lines.append(f"{pad}{node.selector} {{")
                lines.append(render_nodes(node.children, depth + 1))
                lines.append(f"{pad}}}")
            else:
                lines.append(f"{pad}{node.selector} {{}}")
        previous = node
    return "\n".join(lines)


def block_from_tree(selector: str, tree: dict) -> Block:
    """Build a block from a css tree such as ``{"body": {"@apply bg-background": {}}}``."""
    block = Block(_normalise_selector(selector))
    merge_tree(block.children, tree)
    return block


def merge_tree(nodes: list[Node], tree: dict) -> bool:
    """Merge a css tree into *nodes*; later values win.  Returns ``True`` on change."""
    changed = False
    for key, value in tree.items():
        if isinstance(value, str):
            target = Block("", nodes)
            changed |= target.set(key, value)
        elif isinstance(value, dict) and not value and key.startswith("@"):
            if not has_statement(nodes, key):
                nodes.append(Statement(key))
                changed = True
        elif isinstance(value, dict):
            existing = find_block(nodes, key)
            if existing is None:
                nodes.append(block_from_tree(key, value))
                changed = True
            else:
                changed |= merge_tree(existing.children, value)
    return changed
