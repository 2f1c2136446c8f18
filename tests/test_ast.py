import json
from collections.abc import Callable

import hypothesis.strategies as st
import pytest
from hypothesis import given

from fortree.fortree_ast import Case, Node, Origin
from fortree.fortree_constants import NODE_KINDS

Parse = Callable[..., Node]

IF_ELSE = """
if (x) then
  y = 1
else
  y = 2
end if
"""

SELECT = """
select case (op)
case (1)
  y = 1
case default
  y = 0
end select
"""


def test_unknown_kind_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown node kind"):
        Node("lambda")


def test_node_repr() -> None:
    node = Node("call", "call foo(x)", Origin(4), tag="foo")
    assert repr(node) == "Node(call, tag='foo', origin=4)"


def test_node_repr_truncates_children() -> None:
    node = Node("loop", children=[Node("cycle") for _ in range(5)])
    assert repr(node).endswith(", ...])")


def test_node_eq() -> None:
    a = Node("assignment", "x = 1", Origin(1), tag="x")
    b = Node("assignment", "x = 1", Origin(1), tag="x")
    assert a == b
    assert a != Node("assignment", "x = 1", Origin(2), tag="x")
    assert a != "x = 1"


def test_append_sets_depth_recursively() -> None:
    loop = Node("loop", children=[Node("assignment")])
    root = Node("root")
    sub = Node("subroutine")
    root.append(sub)
    sub.append(loop)
    assert (sub.depth, loop.depth, loop.children[0].depth) == (1, 2, 3)


def test_append_routes_to_active_branch() -> None:
    cond = Node("conditional")
    cond.append(Node("stop"))
    cond.start_else()
    cond.append(Node("return"))
    assert [n.kind for n in cond.children] == ["stop"]
    assert [n.kind for n in cond.else_children] == ["return"]

    sel = Node("selection")
    sel.start_case("1")
    sel.append(Node("cycle"))
    sel.start_case("default")
    sel.append(Node("exit"))
    assert sel.cases == [Case("1", [Node("cycle")]), Case("default", [Node("exit")])]
    assert sel.case_index == 1


def test_origin() -> None:
    assert str(Origin(7)) == "7"
    assert str(Origin(7).synthetic()) == "7.1"
    assert str(Origin(7).synthetic().synthetic()) == "7.2"
    assert Origin(7) == Origin(7)
    assert Origin(7) != Origin(7, 1)
    assert Origin(7) < Origin(7, 1) < Origin(8)
    assert len({Origin(3), Origin(3), Origin(3, 1)}) == 2
    assert repr(Origin(2, 1)) == "Origin(2.1)"


def test_find_path(parse: Parse) -> None:
    root = parse(
        """
        module m
          subroutine a
          end subroutine a
          subroutine b
            x = 1
          end subroutine b
        end module m
        """
    )
    found = root.find([("module", "M"), ("subroutine", "b")])
    assert found is not None
    assert found.tag == "b"
    assert root.find([("module", None), ("subroutine", None)]) is root.children[0].children[0]
    assert root.find([("module", "m"), ("subroutine", "c")]) is None
    assert root.find([]) is root


def test_find_descends_into_else_and_cases(parse: Parse) -> None:
    cond_root = parse(IF_ELSE)
    found = cond_root.find([("conditional", "x"), ("assignment", None)])
    assert found is not None and found.raw_text == "y = 1"

    sel_root = parse(SELECT)
    found = sel_root.find([("selection", "op"), ("assignment", None)])
    assert found is not None and found.raw_text == "y = 1"


def test_walk_is_preorder(parse: Parse) -> None:
    root = parse(IF_ELSE)
    assert [n.raw_text for n in root.walk()] == ["", "if (x) then", "y = 1", "y = 2"]


def test_dump(parse: Parse) -> None:
    root = parse(
        """
        subroutine foo(x)
          integer x
          x = 1
        end subroutine foo
        """
    )
    assert root.dump() == (
        "root (0)\n"
        "  subroutine (1) subroutine foo(x)\n"
        "    declaration (2) integer x\n"
        "    assignment (2) x = 1"
    )


def test_dump_subtree_with_else(parse: Parse) -> None:
    cond = parse(IF_ELSE).children[0]
    assert cond.dump() == (
        "conditional (1) if (x) then\n"
        "  assignment (2) y = 1\n"
        "else:\n"
        "  assignment (2) y = 2"
    )


def test_dump_cases(parse: Parse) -> None:
    dump = parse(SELECT).dump()
    assert "  case (1):\n    assignment (2) y = 1" in dump
    assert "  case default:\n    assignment (2) y = 0" in dump


def test_to_dot(parse: Parse) -> None:
    dot = parse(IF_ELSE).to_dot()
    lines = dot.splitlines()
    assert lines[0] == "digraph fortree {"
    assert lines[-1] == "}"
    assert sum(1 for line in lines if "->" in line) == 3
    assert '  n1 -> n3 [label="else"];' in lines
    assert '  n1 [label="conditional\\nx"];' in lines


def test_to_dot_case_edges(parse: Parse) -> None:
    dot = parse(SELECT).to_dot()
    assert '[label="case (1)"]' in dot
    assert '[label="case default"]' in dot


def test_to_dict_is_json_ready(parse: Parse) -> None:
    root = parse(SELECT)
    data = json.loads(json.dumps(root.to_dict()))
    sel = data["children"][0]
    assert sel["kind"] == "selection"
    assert sel["origin"] == "1"
    assert sel["tag"] == "op"
    assert [c["condition"] for c in sel["cases"]] == ["1", "default"]
    assert sel["cases"][0]["children"][0]["raw_text"] == "y = 1"


@given(st.sampled_from(sorted(NODE_KINDS)), st.text())  # type: ignore[misc]
def test_node_eq_same_kind_text(kind: str, text: str) -> None:
    assert Node(kind, text) == Node(kind, text)


@given(st.text(min_size=1).filter(lambda s: s not in NODE_KINDS))  # type: ignore[misc]
def test_node_rejects_any_other_kind(kind: str) -> None:
    with pytest.raises(ValueError):
        Node(kind)


def test_masked_elsewhere_dump_and_dot(parse: Parse) -> None:
    root = parse(
        """
        where (m > 0)
          a = 1
        elsewhere (m < 0)
          a = -1
        elsewhere
          a = 0
        end where
        """
    )
    node = root.children[0]
    assert node.dump() == (
        "where-loop (1) where (m > 0)\n"
        "  assignment (2) a = 1\n"
        "elsewhere (m < 0):\n"
        "  assignment (2) a = -1\n"
        "else:\n"
        "  assignment (2) a = 0"
    )
    assert '[label="elsewhere (m < 0)"]' in node.to_dot()
    assert node.to_dict()["cases"][0]["keyword"] == "elsewhere"


def test_case_heading() -> None:
    assert Case("1, 2").heading() == "case (1, 2)"
    assert Case("DEFAULT").heading() == "case default"
    assert Case("m < 0", keyword="elsewhere").heading() == "elsewhere (m < 0)"
    assert Case("m", keyword="elsewhere") != Case("m")
    assert repr(Case("m", keyword="elsewhere")) == "Case(elsewhere 'm', 0 statement(s))"
