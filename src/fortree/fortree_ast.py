"""
Defines the syntax tree node structure produced by the fortree parser.

Classes:
    Origin:
        Provenance of a node: the physical line of the logical statement it came
        from, plus an ordinal for statements synthesized from an inline trailing
        clause (e.g. the body of a single-statement `if`).

    Case:
        One `case (...)` arm of a selection, or one masked `elsewhere (...)`
        arm of a where-loop, and the statements under it.

    Node:
        A node of the tree. Every node shares kind, origin, depth, raw text,
        symbolic tag, comments and children; three kinds carry extra state:
        conditional (else branch), selection (case arms) and
        archaic-labeled-loop (numeric terminal label). `where-loop` keeps masked
        `elsewhere (...)` clauses as arms and the final `elsewhere` as its
        else branch.

    NodeDict:
        TypedDict representation of a serialized Node, for JSON output.

Each Node exposes the export contracts downstream tooling relies on:
    find(path):    descend by (kind, tag) pairs, first match per level.
    walk():        pre-order traversal over every branch.
    dump():        indented text rendering for debugging and golden files.
    to_dot():      Graphviz DOT graph of nodes, child, else and case edges.
    to_dict():     nested dictionary ready for `json.dumps`.

Example:
    root = Node("root")
    sub = Node("subroutine", "subroutine foo(x)", Origin(1), tag="foo")
    root.append(sub)
"""

from collections.abc import Iterator, Sequence
from typing import Any, TypedDict

from fortree.fortree_constants import NODE_KINDS


class Origin:
    """Physical line a node came from, with an optional synthetic ordinal.

    Attributes:
        line (int): Start line of the logical statement (0 for the root).
        ordinal (int | None): None for real statements; 1, 2, ... for nodes
            built from an inline trailing clause, nested ones counting up.
    """

    def __init__(self, line: int, ordinal: int | None = None) -> None:
        self.line = line
        self.ordinal = ordinal

    def synthetic(self) -> "Origin":
        return Origin(self.line, (self.ordinal or 0) + 1)

    def _key(self) -> tuple[int, int]:
        return (self.line, self.ordinal or 0)

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Origin) and self._key() == other._key()

    def __lt__(self, other: "Origin") -> bool:
        return self._key() < other._key()

    def __le__(self, other: "Origin") -> bool:
        return self._key() <= other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self.ordinal is None:
            return str(self.line)
        return f"{self.line}.{self.ordinal}"

    def __repr__(self) -> str:
        return f"Origin({self})"


class Case:
    """A conditional arm: a `case` of a selection or a masked `elsewhere`.

    Attributes:
        condition (str): Condition text without the enclosing parentheses.
        children (list[Node]): Statements under the arm.
        keyword (str): "case" or "elsewhere", used for headings.
    """

    def __init__(
        self,
        condition: str,
        children: list["Node"] | None = None,
        keyword: str = "case",
    ) -> None:
        self.condition = condition
        self.children: list[Node] = children or []
        self.keyword = keyword

    def heading(self) -> str:
        if self.keyword == "case" and self.condition.lower() == "default":
            return "case default"
        return f"{self.keyword} ({self.condition})"

    def __repr__(self) -> str:
        count = len(self.children)
        return f"Case({self.keyword} {self.condition!r}, {count} statement(s))"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Case)
            and self.keyword == other.keyword
            and self.condition == other.condition
            and self.children == other.children
        )


class NodeDict(TypedDict, total=False):
    """
    TypedDict representation of a Node used for serialization.

    Fields:
        kind (str): Node kind (e.g. "subroutine", "assignment").
        origin (str): Provenance, "12" or "12.1" for synthesized nodes.
        depth (int): Nesting depth, root is 0.
        raw_text (str): Verbatim logical-line text.
        tag (str | None): Extracted symbolic tag.
        label (str | None): Statement label, or a labeled loop's terminal label.
        comments (list[str]): Attached comments.
        children (list[NodeDict]): Primary child nodes.
        else_children (list[NodeDict]): Else / elsewhere branch.
        cases (list[dict]): Selection or masked-elsewhere arms with their
            keyword, condition and children.
    """

    kind: str
    origin: str
    depth: int
    raw_text: str
    tag: str | None
    label: str | None
    comments: list[str]
    children: list["NodeDict"]
    else_children: list["NodeDict"]
    cases: list[dict[str, Any]]


class Node:
    """
    A node of the fortree syntax tree.

    Args:
        kind (str): One of NODE_KINDS.
        raw_text (str): Verbatim logical-line text ("cargo").
        origin (Origin, optional): Provenance. Defaults to line 0.
        tag (str, optional): Symbolic tag extracted from the raw text.
        comments (list[str], optional): Comments attached to the node.
        children (list[Node], optional): Initial children.
        label (str, optional): Numeric statement label; the terminal label
            for archaic labeled loops.

    Raises:
        ValueError: If `kind` is not a known node kind.
    """

    def __init__(
        self,
        kind: str,
        raw_text: str = "",
        origin: Origin | None = None,
        tag: str | None = None,
        comments: list[str] | None = None,
        children: list["Node"] | None = None,
        label: str | None = None,
    ) -> None:
        if kind not in NODE_KINDS:
            raise ValueError(f"Unknown node kind: {kind!r}")
        self.kind = kind
        self.raw_text = raw_text
        self.origin = origin or Origin(0)
        self.tag = tag
        self.comments: list[str] = comments or []
        self.depth = 0
        self.children: list[Node] = []
        self.else_children: list[Node] = []
        self.has_else = False
        self.cases: list[Case] = []
        self.case_index: int | None = None
        self.label = label
        for child in children or []:
            self.append(child)

    # Construction

    def append(self, child: "Node") -> None:
        """Append `child` to the branch currently receiving statements."""
        child._set_depth(self.depth + 1)
        if self.has_else:
            self.else_children.append(child)
        elif self.case_index is not None:
            self.cases[self.case_index].children.append(child)
        else:
            self.children.append(child)

    def start_else(self) -> None:
        self.has_else = True

    def start_case(self, condition: str, keyword: str = "case") -> None:
        self.cases.append(Case(condition, keyword=keyword))
        self.case_index = len(self.cases) - 1

    def _set_depth(self, depth: int) -> None:
        self.depth = depth
        for _, branch in self.branches():
            for child in branch:
                child._set_depth(depth + 1)

    # Traversal

    def branches(self) -> Iterator[tuple[str | None, list["Node"]]]:
        """Yield (edge label, child list) pairs in source order.

        The primary branch comes first, then case or masked `elsewhere` arms,
        then the else branch.
        """
        yield None, self.children
        for case in self.cases:
            yield case.heading(), case.children
        if self.has_else:
            yield "else", self.else_children

    def iter_children(self) -> Iterator["Node"]:
        for _, branch in self.branches():
            yield from branch

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.iter_children():
            yield from child.walk()

    def matches(self, kind: str, tag: str | None = None) -> bool:
        if self.kind != kind:
            return False
        if tag is None:
            return True
        return self.tag is not None and self.tag.lower() == tag.lower()

    def find(self, path: Sequence[tuple[str, str | None]]) -> "Node | None":
        """Follow (kind, tag) pairs down the tree, first match per level.

        A tag of None matches any tag. Tags compare case-insensitively.
        """
        node: Node | None = self
        for kind, tag in path:
            assert node is not None  # for mypy
            node = next((c for c in node.iter_children() if c.matches(kind, tag)), None)
            if node is None:
                return None
        return node

    # Export

    def dump(self) -> str:
        return "\n".join(self._dump_lines(self.depth))

    def _dump_lines(self, base: int) -> list[str]:
        indent = "  " * (self.depth - base)
        out = [f"{indent}{self.kind} ({self.depth}) {self.raw_text}".rstrip()]
        for label, branch in self.branches():
            if label is not None:
                out.append(f"{indent}{label}:")
            for child in branch:
                out.extend(child._dump_lines(base))
        return out

    def to_dot(self) -> str:
        """Return a Graphviz DOT description of the subtree rooted here."""
        lines = [
            "digraph fortree {",
            '  node [shape=box fontname="Courier"];',
        ]
        ids: dict[int, str] = {}
        for node in self.walk():
            ids[id(node)] = f"n{len(ids)}"
            text = node.kind if node.tag is None else f"{node.kind}\\n{node.tag}"
            lines.append(f'  {ids[id(node)]} [label="{_dot_escape(text)}"];')
        for node in self.walk():
            for label, branch in node.branches():
                attrs = "" if label is None else f' [label="{_dot_escape(label)}"]'
                for child in branch:
                    lines.append(f"  {ids[id(node)]} -> {ids[id(child)]}{attrs};")
        lines.append("}")
        return "\n".join(lines)

    def to_dict(self) -> NodeDict:
        return {
            "kind": self.kind,
            "origin": str(self.origin),
            "depth": self.depth,
            "raw_text": self.raw_text,
            "tag": self.tag,
            "label": self.label,
            "comments": list(self.comments),
            "children": [c.to_dict() for c in self.children],
            "else_children": [c.to_dict() for c in self.else_children],
            "cases": [
                {
                    "keyword": case.keyword,
                    "condition": case.condition,
                    "children": [c.to_dict() for c in case.children],
                }
                for case in self.cases
            ],
        }

    def __repr__(self) -> str:
        parts = [f"{self.kind}"]
        if self.tag is not None:
            parts.append(f"tag={self.tag!r}")
        if self.label is not None:
            parts.append(f"label={self.label!r}")
        parts.append(f"origin={self.origin}")
        if self.children:
            preview = ", ".join(repr(c) for c in self.children[:3])
            if len(self.children) > 3:
                preview += ", ..."
            parts.append(f"children=[{preview}]")
        if self.else_children:
            parts.append(f"else_children={len(self.else_children)}")
        if self.cases:
            parts.append(f"cases={len(self.cases)}")
        return f"Node({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Node):
            return False
        return (
            self.kind == other.kind
            and self.raw_text == other.raw_text
            and self.origin == other.origin
            and self.tag == other.tag
            and self.label == other.label
            and self.comments == other.comments
            and self.children == other.children
            and self.else_children == other.else_children
            and self.cases == other.cases
        )


def _dot_escape(text: str) -> str:
    return text.replace('"', '\\"')
