"""
fortree Parser

Folds classified logical statements into a syntax tree using a stack of open
block nodes (the block stack automaton). The root node always sits at the
bottom of the stack; openers push, closers pop after checking that they match
the innermost open block, and every other statement is appended to the block
on top of the stack.

Statement handling
------------------
- Openers (module, program, function, subroutine, do, do while, labeled do,
  where, select case, if-then): appended to the current block and pushed.
- Closers (`end X`, bare `end`): the top block must be of the expected kind.
  The closer's comments are attached to the closed node.
- `NN continue`: closes the top labeled loop when its terminal label is NN,
  together with every enclosing labeled loop sharing that label. Otherwise it
  is an ordinary `continue` statement inside the open block.
- `else` / `elsewhere`: switch the top block to its else branch. A masked
  `elsewhere (...)` instead starts a new arm of the top where-loop; any number
  of them may precede the final unmasked `elsewhere`.
- `else if (...) then`: closes the current conditional and opens a new one,
  so a single `end if` terminates the whole chain.
- `case (...)` / `case default`: starts a new arm of the top selection.
- `if (...) stmt` / `where (...) stmt`: opens the block, folds the trailing
  statement into it with a synthetic origin, and closes it again.

Entry Points
------------
- `Parser(lines).parse()`: fold already assembled logical lines.
- `parse_source(source)`: assemble, filter and parse a whole source text.

Raises
------
BlockMismatchError
    When a closer, else or case label meets the wrong innermost block.
UnterminatedBlockError
    When input ends with blocks still open.
UnclassifiableStatementError
    Propagated from the classifier.
"""

from __future__ import annotations

import logging

from fortree.fortree_ast import Node, Origin
from fortree.fortree_classifier import (
    CASE,
    CLOSE,
    ELSE,
    ELSE_IF,
    INLINE,
    LABEL_CLOSE,
    OPEN,
    PROGRAM_UNIT,
    Classified,
    Classifier,
    Rule,
)
from fortree.fortree_constants import PROGRAM_UNIT_KINDS
from fortree.fortree_errors import BlockMismatchError, UnterminatedBlockError
from fortree.fortree_lines import LineAssembler, LogicalLine
from fortree.fortree_preproc import filter_conditionals


class Parser:
    """
    Block stack automaton building a Node tree from logical lines.

    Attributes
    ----------
    lines : list[LogicalLine]
        The statements to fold, in physical order.
    classifier : Classifier
        Statement classifier used for every line and inline trailing clause.
    root : Node
        Root of the tree under construction.
    stack : list[Node]
        Currently open blocks, root at index 0.
    pushes, pops : int
        Number of block pushes and successful pops.
    """

    def __init__(
        self,
        lines: list[LogicalLine],
        classifier: Classifier | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.lines = lines
        self.logger = logger or logging.getLogger("fortree.parser")
        self.classifier = classifier or Classifier(logger=logger)
        self.root = Node("root")
        self.stack: list[Node] = [self.root]
        self.pushes = 0
        self.pops = 0

    @property
    def top(self) -> Node:
        return self.stack[-1]

    def parse(self) -> Node:
        """Fold every logical line into the tree and return its root."""
        for line in self.lines:
            classified = self.classifier.classify(line.text, line.start_line)
            if classified is None:
                continue
            self.process(classified, Origin(line.start_line), list(line.comments))

        if len(self.stack) > 1:
            innermost = self.top
            raise UnterminatedBlockError(innermost.kind, innermost.origin.line)

        self.logger.info(
            "Parsed %d statement(s), %d block(s) opened and closed",
            len(self.lines),
            self.pushes,
        )
        return self.root

    def process(self, c: Classified, origin: Origin, comments: list[str]) -> None:
        """Apply one classified statement to the stack."""
        if c.action == OPEN:
            self._open(c, origin, comments)
        elif c.action == CLOSE:
            self._close(c, comments)
        elif c.action == ELSE:
            self._else(c, comments)
        elif c.action == ELSE_IF:
            self._else_if(c, origin, comments)
        elif c.action == CASE:
            self._case(c, comments)
        elif c.action == INLINE:
            self._inline(c, origin, comments)
        elif c.action == LABEL_CLOSE:
            self._label_close(c, origin, comments)
        else:
            self.top.append(self._node(c, origin, comments))

    def _node(self, c: Classified, origin: Origin, comments: list[str]) -> Node:
        assert c.kind is not None  # for mypy
        return Node(
            c.kind, c.text, origin, tag=c.tag, comments=comments, label=c.label
        )

    def _push(self, node: Node) -> None:
        self.top.append(node)
        self.stack.append(node)
        self.pushes += 1
        self.logger.debug("Open %s at line %s (depth %d)", node.kind, node.origin, node.depth)

    def _pop(self) -> Node:
        node = self.stack.pop()
        self.pops += 1
        self.logger.debug("Close %s opened at line %s", node.kind, node.origin)
        return node

    def _expect(self, kind: str, c: Classified) -> Node:
        top = self.top
        if kind == PROGRAM_UNIT:
            ok = top.kind in PROGRAM_UNIT_KINDS
        else:
            ok = top.kind == kind
        if not ok:
            raise BlockMismatchError(kind, top.kind, c.text, c.line)
        return top

    def _open(self, c: Classified, origin: Origin, comments: list[str]) -> Node:
        node = self._node(c, origin, comments)
        self._push(node)
        return node

    def _close(self, c: Classified, comments: list[str]) -> None:
        assert c.expects is not None  # for mypy
        node = self._expect(c.expects, c)
        node.comments.extend(comments)
        self._pop()

    def _else(self, c: Classified, comments: list[str]) -> None:
        assert c.kind is not None  # for mypy
        node = self._expect(c.kind, c)
        if node.has_else:
            raise BlockMismatchError(c.kind, f"{node.kind} with else", c.text, c.line)
        node.comments.extend(comments)
        if c.condition is not None:
            node.start_case(c.condition, "elsewhere")
        else:
            node.start_else()

    def _else_if(self, c: Classified, origin: Origin, comments: list[str]) -> None:
        node = self._expect("conditional", c)
        if node.has_else:
            raise BlockMismatchError(
                "conditional", "conditional with else", c.text, c.line
            )
        self._pop()
        self._open(c, origin, comments)

    def _case(self, c: Classified, comments: list[str]) -> None:
        node = self._expect("selection", c)
        node.comments.extend(comments)
        node.start_case(c.condition or "")

    def _inline(self, c: Classified, origin: Origin, comments: list[str]) -> None:
        node = self._open(c, origin, comments)
        assert c.trailing is not None  # for mypy
        clause = self.classifier.classify(c.trailing, c.line)
        if clause is not None:
            self.process(clause, origin.synthetic(), [])
        if self.top is not node:
            raise BlockMismatchError(node.kind, self.top.kind, c.trailing, c.line)
        self._pop()

    def _label_close(self, c: Classified, origin: Origin, comments: list[str]) -> None:
        top = self.top
        if top.kind != "archaic-labeled-loop" or top.label != c.label:
            self.top.append(self._node(c, origin, comments))
            return
        top.comments.extend(comments)
        self._pop()
        # loops sharing one terminal statement all end here
        while self.top.kind == "archaic-labeled-loop" and self.top.label == c.label:
            self._pop()


def parse_source(
    source: str,
    intercepts: list[Rule] | None = None,
    logger: logging.Logger | None = None,
) -> Node:
    """Run the whole front end over a source text and return the tree root.

    Args:
        source: The full source text.
        intercepts: Optional early-intercept rules for the classifier.
        logger: Diagnostics handle shared by every stage.
    """
    lines = LineAssembler(logger).assemble(source.splitlines())
    lines = filter_conditionals(lines, logger)
    classifier = Classifier(intercepts, logger)
    return Parser(lines, classifier, logger).parse()
