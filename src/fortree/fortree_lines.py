"""
Logical-line assembly for fortree.

Turns the physical lines of a source file into logical statements: comments
are split off and reattached, blank lines are dropped, and continuation
fragments are fused into the statement they continue.

Classes:
    LogicalLine: One normalized statement with its comments and provenance.
    LineAssembler: Builds LogicalLine sequences from physical lines.

Functions:
    split_comment(line) -> tuple[str, str | None]
    is_comment_line(line) -> bool
    assemble_lines(source, logger=None) -> list[LogicalLine]

Input conventions:
    - `!` as the first non-space character, or `*` in column 1, marks a pure
      comment line. Its payload joins the previous logical line, or the next
      one when no statement has been seen yet.
    - `!` outside a quoted string starts a trailing comment, except on
      preprocessor directive lines.
    - A leading `&` continues the previous logical line; a trailing `&` makes
      the next fragment continue this one.

Raises:
    ContinuationError: If a leading `&` fragment has nothing to continue.
"""

import logging
from collections.abc import Iterable
from typing import Any

from fortree.fortree_constants import (
    COMMENT_MARKER,
    CONTINUATION_MARKER,
    FIXED_FORM_COMMENT_MARKERS,
    PREPROCESSOR_MARKER,
    QUOTE_CHARS,
)
from fortree.fortree_errors import ContinuationError


class LogicalLine:
    """A single logical statement assembled from one or more physical lines.

    Attributes:
        start_line (int): First physical line (1-based).
        end_line (int): Last physical line fused into this statement.
        text (str): Space-joined, trimmed code of every fragment.
        comments (list[str]): Comment payloads in physical order.
    """

    def __init__(
        self,
        start_line: int,
        end_line: int,
        text: str,
        comments: list[str] | None = None,
    ) -> None:
        self.start_line = start_line
        self.end_line = end_line
        self.text = text
        self.comments: list[str] = comments or []

    def extend(self, line: int, code: str, comments: list[str]) -> None:
        """Fuse a continuation fragment into this statement."""
        self.text = " ".join(part for part in (self.text, code) if part)
        self.comments.extend(comments)
        self.end_line = line

    def __repr__(self) -> str:
        span = (
            f"{self.start_line}"
            if self.start_line == self.end_line
            else f"{self.start_line}-{self.end_line}"
        )
        return f"LogicalLine({span}, {self.text!r}, comments={self.comments!r})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, LogicalLine)
            and self.start_line == other.start_line
            and self.end_line == other.end_line
            and self.text == other.text
            and self.comments == other.comments
        )


def split_comment(line: str) -> tuple[str, str | None]:
    """Split a physical line into its code and trailing comment.

    Comment markers inside single- or double-quoted strings are ignored.

    Returns:
        tuple[str, str | None]: The code portion (right-stripped) and the
        comment payload, or None when the line has no comment.
    """
    quote = ""
    for i, ch in enumerate(line):
        if quote:
            if ch == quote:
                quote = ""
        elif ch in QUOTE_CHARS:
            quote = ch
        elif ch == COMMENT_MARKER:
            return line[:i].rstrip(), line[i + 1 :].strip()
    return line.rstrip(), None


def is_comment_line(line: str) -> bool:
    if line[:1] in FIXED_FORM_COMMENT_MARKERS:
        return True
    return line.lstrip().startswith(COMMENT_MARKER)


class LineAssembler:
    """Assembles physical lines into LogicalLine objects.

    Args:
        logger (logging.Logger, optional): Diagnostics handle. Defaults to the
            `fortree.lines` logger.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("fortree.lines")

    def assemble(self, physical_lines: Iterable[str]) -> list[LogicalLine]:
        lines: list[LogicalLine] = []
        pending: list[str] = []
        continues = False

        for number, raw in enumerate(physical_lines, start=1):
            raw = raw.rstrip("\r\n")
            if not raw.strip():
                continue

            if is_comment_line(raw):
                payload = raw.lstrip()[1:].strip()
                if lines:
                    lines[-1].comments.append(payload)
                else:
                    pending.append(payload)
                continue

            if raw.lstrip().startswith(PREPROCESSOR_MARKER):
                # `!` is negation in directive expressions
                code, comment = raw, None
            else:
                code, comment = split_comment(raw)
            code = code.strip()
            comments = [comment] if comment is not None else []

            leading = code.startswith(CONTINUATION_MARKER)
            if leading:
                code = code[1:].strip()
            trailing = code.endswith(CONTINUATION_MARKER)
            if trailing:
                code = code[:-1].rstrip()

            if leading or continues:
                if not lines:
                    raise ContinuationError(number, raw.strip())
                self.logger.debug(
                    "Fusing line %d into statement at line %d",
                    number,
                    lines[-1].start_line,
                )
                lines[-1].extend(number, code, comments)
            else:
                lines.append(LogicalLine(number, number, code, pending + comments))
                pending = []
            continues = trailing

        if pending:
            self.logger.debug("Dropping %d comment(s) with no statement", len(pending))
        return lines


def assemble_lines(
    source: str, logger: logging.Logger | None = None
) -> list[LogicalLine]:
    """Assemble a whole source text into logical lines."""
    return LineAssembler(logger).assemble(source.splitlines())
