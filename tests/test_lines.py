import logging

import pytest
from hypothesis import given
from hypothesis import strategies as st

from fortree.fortree_errors import ContinuationError
from fortree.fortree_lines import (
    LineAssembler,
    LogicalLine,
    assemble_lines,
    is_comment_line,
    split_comment,
)


def assemble(*physical: str) -> list[LogicalLine]:
    return LineAssembler().assemble(list(physical))


@pytest.mark.parametrize(
    "line,expected",
    [
        ("x = 1 ! set x", ("x = 1", "set x")),
        ("x = 1", ("x = 1", None)),
        ("print *, 'a!b' ! tail", ("print *, 'a!b'", "tail")),
        ('print *, "it\'s!" ! q', ('print *, "it\'s!"', "q")),
        ("call f() !", ("call f()", "")),
    ],
)
def test_split_comment(line: str, expected: tuple[str, str | None]) -> None:
    assert split_comment(line) == expected


def test_is_comment_line() -> None:
    assert is_comment_line("! free form")
    assert is_comment_line("    ! indented")
    assert is_comment_line("* fixed form")
    assert not is_comment_line("  x = 2 * y")
    assert not is_comment_line("x = 1 ! trailing")


def test_single_statement() -> None:
    lines = assemble("x = 1")
    assert lines == [LogicalLine(1, 1, "x = 1")]


def test_comment_line_attaches_to_previous_statement() -> None:
    lines = assemble("x = 1", "! about x", "y = 2")
    assert [line.text for line in lines] == ["x = 1", "y = 2"]
    assert lines[0].comments == ["about x"]
    assert lines[1].comments == []


def test_leading_comments_attach_to_first_statement() -> None:
    lines = assemble("! header", "* old style", "x = 1")
    assert len(lines) == 1
    assert lines[0].start_line == 3
    assert lines[0].comments == ["header", "old style"]


def test_inline_comment_is_split_off() -> None:
    lines = assemble("x = 1 ! set x")
    assert lines[0].text == "x = 1"
    assert lines[0].comments == ["set x"]


@pytest.mark.parametrize(
    "directive", ["#if !defined(FOO)", "  # if !X && !Y", "#define NOT(a) (!a)"]
)
def test_directive_bang_is_not_a_comment(directive: str) -> None:
    lines = assemble(directive, "x = 1 ! trailing")
    assert lines[0].text == directive.strip()
    assert lines[0].comments == []
    assert lines[1].comments == ["trailing"]


def test_blank_lines_are_dropped() -> None:
    lines = assemble("", "x = 1", "   ", "y = 2")
    assert [(line.start_line, line.text) for line in lines] == [(2, "x = 1"), (4, "y = 2")]


def test_trailing_and_leading_markers_fuse_once() -> None:
    lines = assemble("x = 1 + &", "&    2")
    assert lines == [LogicalLine(1, 2, "x = 1 + 2")]


def test_leading_marker_only() -> None:
    lines = assemble("x = 1 +", "  & 2")
    assert lines == [LogicalLine(1, 2, "x = 1 + 2")]


def test_trailing_marker_only() -> None:
    lines = assemble("call solve(a, &", "           b)")
    assert lines == [LogicalLine(1, 2, "call solve(a, b)")]


def test_blank_line_does_not_break_continuation() -> None:
    lines = assemble("x = 1 + &", "", "    2")
    assert lines == [LogicalLine(1, 3, "x = 1 + 2")]


def test_comment_line_inside_continuation() -> None:
    lines = assemble("x = a + &", "! middle", "    b")
    assert lines == [LogicalLine(1, 3, "x = a + b", ["middle"])]


def test_continuation_collects_comments_in_order() -> None:
    lines = assemble("a = b + & ! one", "& c ! two")
    assert lines[0].text == "a = b + c"
    assert lines[0].comments == ["one", "two"]


def test_continuation_without_previous_line_raises() -> None:
    with pytest.raises(ContinuationError, match="no preceding line to continue") as exc:
        assemble("", "  & y")
    assert exc.value.lineno == 2


def test_trailing_marker_on_last_line() -> None:
    lines = assemble("x = 1 &")
    assert lines == [LogicalLine(1, 1, "x = 1")]


def test_assemble_lines_from_source() -> None:
    lines = assemble_lines("x = 1\ny = 2 &\n  + 3\n")
    assert [(line.start_line, line.end_line, line.text) for line in lines] == [
        (1, 1, "x = 1"),
        (2, 3, "y = 2 + 3"),
    ]


def test_fusion_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="fortree.lines"):
        assemble("x = 1 + &", "2")
    assert "Fusing line 2 into statement at line 1" in caplog.text


def test_injected_logger_is_used(caplog: pytest.LogCaptureFixture) -> None:
    custom = logging.getLogger("tests.assembler")
    with caplog.at_level(logging.DEBUG, logger="tests.assembler"):
        LineAssembler(custom).assemble(["x = &", "1"])
    assert any(r.name == "tests.assembler" for r in caplog.records)


def test_logical_line_repr() -> None:
    assert repr(LogicalLine(3, 4, "x = 1")) == "LogicalLine(3-4, 'x = 1', comments=[])"
    assert repr(LogicalLine(3, 3, "y")) == "LogicalLine(3, 'y', comments=[])"


fragments = st.from_regex(r"[a-z][a-z0-9 +*]{0,8}[a-z0-9]", fullmatch=True)
comments = st.one_of(st.none(), st.from_regex(r"[a-z][a-z ]{0,8}", fullmatch=True))


@given(st.lists(st.tuples(fragments, comments), min_size=1, max_size=6))  # type: ignore[misc]
def test_continuation_chain_fuses_into_one_line(
    parts: list[tuple[str, str | None]]
) -> None:
    physical = []
    for i, (code, comment) in enumerate(parts):
        line = code + (" &" if i < len(parts) - 1 else "")
        if comment is not None:
            line += f" ! {comment}"
        physical.append(line)

    lines = LineAssembler().assemble(physical)

    assert len(lines) == 1
    assert lines[0].start_line == 1
    assert lines[0].end_line == len(parts)
    assert lines[0].text == " ".join(code.strip() for code, _ in parts).strip()
    assert lines[0].comments == [c.strip() for _, c in parts if c is not None]
