"""
Statement classifier for fortree.

Classifies one logical statement at a time against an ordered rule table.
Each rule pairs a case-insensitive pattern with the node kind it produces and
the action the block stack automaton must take for it (open a block, close
one, switch to an else branch, ...). The first matching rule wins.

Rule order is load-bearing: patterns overlap, so more specific rules must
precede general ones. In particular the declaration rules and the trailing
catch-all assignment rule would otherwise shadow block openers such as
`integer function f(x)` or control statements such as `if (x) y = 1`.

Priority categories
-------------------
1. blank statements and the supported preprocessor directives
2. block openers and closers (module, program, function, subroutine,
   select case, if / else, do loops, where)
3. declaration section (implicit, use, one rule per type keyword)
4. simple control statements (call, stop, return, cycle, exit, continue, goto)
5. I/O and miscellaneous statements (format, read, write, print, allocate)
6. catch-all assignment

Nested parentheses
------------------
Conditions such as `if ((a .and. (b > c(i))) .or. d) x = 1` cannot be matched
in general by a regular expression. Conditions are matched with
`balanced_parens()`, a balanced-parenthesis fragment unrolled
PAREN_UNROLL_DEPTH times. Deeper conditions are caught by opaque fallback
rules placed after the precise ones: an open conditional takes everything
between `if (` and the last `) then`, an inline one splits at the first `)`
followed by a name. The condition text is kept verbatim and a
warning is logged.

Classes:
    Rule: One (pattern, kind, action) entry of the rule table.
    Classified: The result of classifying a statement.
    Classifier: Applies intercept rules, then the built-in rule table.

Functions:
    balanced_parens(depth) -> str
    build_rules() -> list[Rule]
    discard(pattern) -> Rule

Raises:
    UnclassifiableStatementError: When no rule matches a statement.
"""

import logging
import re

from fortree.fortree_constants import (
    DECLARATION_KEYWORDS,
    PAREN_UNROLL_DEPTH,
    PREPROCESSOR_DIRECTIVES,
)
from fortree.fortree_errors import UnclassifiableStatementError

# Actions understood by the block stack automaton
SIMPLE = "simple"
OPEN = "open"
CLOSE = "close"
ELSE = "else"
ELSE_IF = "else_if"
CASE = "case"
INLINE = "inline"
LABEL_CLOSE = "label_close"
DISCARD = "discard"

# Expected kind of a bare `end`: any program unit
PROGRAM_UNIT = "program-unit"


def balanced_parens(depth: int = PAREN_UNROLL_DEPTH) -> str:
    """Return a regex matching a parenthesized group nested up to `depth` levels."""
    fragment = r"\([^()]*\)"
    for _ in range(depth - 1):
        fragment = r"\((?:[^()]|" + fragment + r")*\)"
    return fragment


BAL = balanced_parens()
NAME = r"[a-z_]\w*"
CONSTRUCT = rf"(?:{NAME}\s*:\s*)?"
LHS = rf"{NAME}(?:\s*{BAL})?(?:\s*%\s*{NAME}(?:\s*{BAL})?)*"
TYPE_PREFIX = (
    r"(?:pure|impure|elemental|recursive|double\s+precision"
    r"|(?:integer|real|logical|complex|character)(?:\s*(?:\*\s*\d+|\(\s*[\w=*]+\s*\)))?"
    r"|type\s*\(\s*\w+\s*\))"
)
DECLARATION_NAME = (
    r"^(?:double\s+precision|double\s+complex|integer|real|complex|logical|character)"
    rf"(?:\s*\*\s*(?:\d+|\(\s*\*\s*\)))?(?:\s*{BAL})?\s*,?\s*({NAME})"
)

_IF_START = re.compile(r"^(?:\w+\s*:\s*)?(?:else\s*)?(?:if|where)\s*\(", re.IGNORECASE)
_LABELED = re.compile(r"^(\d+)\s+(\S.*)$")

# Kind-specific secondary patterns used to extract a node's symbolic tag,
# tried in order against the statement text (label prefix removed).
TAG_PATTERNS: dict[str, list[str]] = {
    "module": [r"^module\s+(\w+)"],
    "program": [r"^program\s+(\w+)"],
    "function": [r"\bfunction\s+(\w+)"],
    "subroutine": [r"\bsubroutine\s+(\w+)"],
    "call": [r"^call\s+(\w+)"],
    "using": [r"^use\b\s*(?:,\s*\w+\s*)?(?:::)?\s*(\w+)"],
    "declaration": [rf"::\s*({NAME})", DECLARATION_NAME],
    "assignment": [rf"^({LHS})\s*="],
    "loop": [rf"^{CONSTRUCT}do\s+({NAME})\s*=", rf"^{CONSTRUCT}do\s+while\s*({BAL})"],
    "archaic-labeled-loop": [rf"\bdo\s+\d+\s*,?\s*({NAME})\s*="],
    "conditional": [rf"\bif\s*({BAL})"],
    "where-loop": [rf"\bwhere\s*({BAL})"],
    "selection": [rf"\bselect\s+case\s*({BAL})"],
    "goto": [r"^go\s*to\s*(\d+)"],
    "continue": [r"^(\d+)\s+continue"],
    "format": [r"^(\d+)\s+format"],
    "allocate": [rf"^(?:de)?allocate\s*\(\s*({NAME})"],
}

_TAG_REGEXES: dict[str, list[re.Pattern[str]]] = {
    kind: [re.compile(p, re.IGNORECASE) for p in patterns]
    for kind, patterns in TAG_PATTERNS.items()
}

_ARCHAIC_LABEL = re.compile(r"\bdo\s+(\d+)", re.IGNORECASE)


def _statement(keyword: str) -> str:
    """Pattern for a keyword-led statement that is not an assignment to it."""
    words = r"\s+".join(re.escape(w) for w in keyword.split())
    return rf"^{words}\b(?!\s*=(?!=))(?!\s*{BAL}\s*=(?!=))"


def _strip_parens(text: str) -> str:
    text = text.strip()
    if text.startswith("(") and text.endswith(")"):
        return text[1:-1].strip()
    return text


class Rule:
    """One entry of the classifier rule table.

    Args:
        pattern (str): Case-insensitive regex matched at the start of the
            statement text. Named groups `label`, `cond` and `trailing` are
            picked up when present.
        kind (str | None): Node kind produced (or expected, for closers).
            None for intercepts that discard the statement.
        action (str): What the block stack automaton does with the match.
        expects (str, optional): Kind a closer must find on top of the stack;
            defaults to `kind`.
        degraded (bool): Opaque fallback for conditions nested deeper than
            the unroll depth. Matches are logged as warnings.
    """

    def __init__(
        self,
        pattern: str,
        kind: str | None,
        action: str = SIMPLE,
        expects: str | None = None,
        degraded: bool = False,
    ) -> None:
        self.pattern = pattern
        self.regex = re.compile(pattern, re.IGNORECASE)
        self.kind = kind
        self.action = DISCARD if kind is None else action
        self.expects = expects or kind
        self.degraded = degraded

    def match(self, text: str) -> re.Match[str] | None:
        return self.regex.match(text)

    def __repr__(self) -> str:
        return f"Rule({self.kind}, {self.action}, {self.pattern!r})"


class Classified:
    """A classified statement.

    Attributes:
        kind (str | None): Node kind, None when discarded by an intercept.
        action (str): Automaton action (SIMPLE, OPEN, CLOSE, ...).
        text (str): Full statement text, label prefix included.
        line (int): Physical start line of the statement.
        tag (str | None): Symbolic tag, when the kind defines one.
        label (str | None): Numeric statement label or loop terminal label.
        condition (str | None): Condition text of if/where/case statements.
        trailing (str | None): Inline trailing clause of an if/where.
        expects (str | None): Kind a closer must find on top of the stack.
    """

    def __init__(
        self,
        kind: str | None,
        action: str,
        text: str,
        line: int,
        tag: str | None = None,
        label: str | None = None,
        condition: str | None = None,
        trailing: str | None = None,
        expects: str | None = None,
    ) -> None:
        self.kind = kind
        self.action = action
        self.text = text
        self.line = line
        self.tag = tag
        self.label = label
        self.condition = condition
        self.trailing = trailing
        self.expects = expects

    def __repr__(self) -> str:
        return f"Classified({self.kind}, {self.action}, {self.text!r})"


def build_rules() -> list[Rule]:
    """Build the ordered built-in rule table."""
    directives = "|".join(PREPROCESSOR_DIRECTIVES)
    rules = [
        # 1. passthrough
        Rule(r"^$", "empty"),
        Rule(rf"^#\s*(?:{directives})\b", "preprocessor-directive"),
        # 2. blocks: program units
        Rule(r"^module\s+(?!procedure\b)\w+\s*$", "module", OPEN),
        Rule(r"^end\s*module\b", "module", CLOSE),
        Rule(r"^program\s+\w+\s*$", "program", OPEN),
        Rule(r"^end\s*program\b", "program", CLOSE),
        Rule(rf"^(?:{TYPE_PREFIX}\s+)*function\s+\w+\s*\(", "function", OPEN),
        Rule(r"^end\s*function\b", "function", CLOSE),
        Rule(rf"^(?:{TYPE_PREFIX}\s+)*subroutine\s+\w+", "subroutine", OPEN),
        Rule(r"^end\s*subroutine\b", "subroutine", CLOSE),
        # selection
        Rule(rf"^{CONSTRUCT}select\s+case\s*{BAL}\s*$", "selection", OPEN),
        Rule(r"^case\s+(?P<cond>default)\b", "selection", CASE),
        Rule(rf"^case\s*(?P<cond>{BAL})", "selection", CASE),
        Rule(r"^end\s*select\b", "selection", CLOSE),
        # conditionals
        Rule(rf"^{CONSTRUCT}if\s*(?P<cond>{BAL})\s*then$", "conditional", OPEN),
        Rule(rf"^else\s*if\s*(?P<cond>{BAL})\s*then\b", "conditional", ELSE_IF),
        Rule(r"^else(?!\s*where\b)(?:\s+\w+)?$", "conditional", ELSE),
        Rule(r"^end\s*if\b", "conditional", CLOSE),
        Rule(rf"^if\s*{BAL}\s*\d+\s*,\s*\d+\s*,\s*\d+$", "goto"),
        Rule(rf"^if\s*(?P<cond>{BAL})\s*(?P<trailing>\S.*)$", "conditional", INLINE),
        # loops
        Rule(
            rf"^{CONSTRUCT}do\s+(?P<label>\d+)\s*,?\s*(?:{NAME}\s*=|while\s*{BAL}\s*$)",
            "archaic-labeled-loop",
            OPEN,
        ),
        Rule(rf"^{CONSTRUCT}do\s+while\s*{BAL}\s*$", "loop", OPEN),
        Rule(rf"^{CONSTRUCT}do(?:\s+{NAME}\s*=.*)?$", "loop", OPEN),
        Rule(r"^end\s*do\b", "loop", CLOSE),
        Rule(rf"^{CONSTRUCT}where\s*(?P<cond>{BAL})\s*$", "where-loop", OPEN),
        Rule(rf"^else\s*where\b\s*(?P<cond>{BAL})?\s*$", "where-loop", ELSE),
        Rule(r"^end\s*where\b", "where-loop", CLOSE),
        Rule(rf"^where\s*(?P<cond>{BAL})\s*(?P<trailing>\S.*)$", "where-loop", INLINE),
        # opaque fallbacks for conditions nested beyond the unroll depth
        Rule(
            rf"^{CONSTRUCT}if\s*(?P<cond>\(.*\))\s*then$",
            "conditional",
            OPEN,
            degraded=True,
        ),
        Rule(
            r"^else\s*if\s*(?P<cond>\(.*\))\s*then$",
            "conditional",
            ELSE_IF,
            degraded=True,
        ),
        Rule(
            r"^if\s*(?P<cond>\(.*?\))\s*(?P<trailing>[a-z_]\w*\b.*)$",
            "conditional",
            INLINE,
            degraded=True,
        ),
        Rule(
            r"^where\s*(?P<cond>\(.*?\))\s*(?P<trailing>[a-z_]\w*\b.*)$",
            "where-loop",
            INLINE,
            degraded=True,
        ),
        Rule(
            rf"^{CONSTRUCT}where\s*(?P<cond>\(.*\))\s*$",
            "where-loop",
            OPEN,
            degraded=True,
        ),
        Rule(r"^end$", "program", CLOSE, expects=PROGRAM_UNIT),
        # 3. declaration section
        Rule(_statement("implicit"), "implicit"),
        Rule(r"^use\b\s*(?:,\s*\w+\s*)?(?:::)?\s*\w+", "using"),
    ]
    for keyword in DECLARATION_KEYWORDS:
        if keyword.endswith("("):
            rules.append(
                Rule(rf"^{keyword[:-1]}(?!\s*{BAL}\s*=(?!=))\s*\(", "declaration")
            )
        else:
            rules.append(Rule(_statement(keyword), "declaration"))
    rules += [
        # 4. simple control
        Rule(r"^call\s+\w+", "call"),
        Rule(_statement("stop"), "stop"),
        Rule(_statement("return"), "return"),
        Rule(_statement("cycle"), "cycle"),
        Rule(_statement("exit"), "exit"),
        Rule(r"^(?P<label>\d+)\s+continue$", "continue", LABEL_CLOSE),
        Rule(r"^continue$", "continue"),
        Rule(r"^go\s*to\b(?!\s*=)", "goto"),
        # 5. I/O and miscellaneous
        Rule(r"^(?P<label>\d+)\s+format\s*\(", "format"),
        Rule(_statement("read"), "read"),
        Rule(r"^write\s*\(", "write"),
        Rule(_statement("print"), "print"),
        Rule(r"^(?:de)?allocate\s*\(", "allocate"),
        # 6. catch-all
        Rule(rf"^{LHS}\s*=(?!=)\s*\S", "assignment"),
    ]
    return rules


def discard(pattern: str) -> Rule:
    """Build an intercept rule that silently drops matching statements."""
    return Rule(pattern, None, DISCARD)


class Classifier:
    """Classifies logical statements against the rule table.

    Args:
        intercepts (list[Rule], optional): Rules evaluated before the built-in
            table. An intercept with kind None consumes the statement and
            nothing is emitted for it.
        logger (logging.Logger, optional): Diagnostics handle. Defaults to the
            `fortree.classifier` logger.
    """

    def __init__(
        self,
        intercepts: list[Rule] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.intercepts: list[Rule] = list(intercepts or [])
        self.rules: list[Rule] = build_rules()
        self.logger = logger or logging.getLogger("fortree.classifier")

    def classify(self, text: str, line: int) -> Classified | None:
        """Classify one statement.

        Args:
            text (str): Logical-line text.
            line (int): Physical start line, for error reporting.

        Returns:
            Classified | None: The classification, or None if an intercept
            discarded the statement.

        Raises:
            UnclassifiableStatementError: If no rule matches.
        """
        for rule in self.intercepts:
            m = rule.match(text)
            if m:
                if rule.action == DISCARD:
                    self.logger.debug("Line %d discarded by intercept %r", line, rule)
                    return None
                return self._build(rule, m, text, text, line)

        result = self._match_table(text, text, line)
        if result is None:
            labeled = _LABELED.match(text)
            if labeled:
                result = self._match_table(labeled.group(2), text, line)
                if result is not None and result.label is None:
                    result.label = labeled.group(1)
        if result is None:
            raise UnclassifiableStatementError(line, text)
        return result

    def _match_table(self, statement: str, text: str, line: int) -> Classified | None:
        for rule in self.rules:
            m = rule.match(statement)
            if m:
                if rule.degraded:
                    self.logger.warning(
                        "Line %d: condition nested deeper than %d levels, "
                        "matched opaquely",
                        line,
                        PAREN_UNROLL_DEPTH,
                    )
                return self._build(rule, m, statement, text, line)
        if _IF_START.match(statement):
            self.logger.warning("Line %d: malformed if/where condition", line)
        return None

    def _build(
        self, rule: Rule, m: re.Match[str], statement: str, text: str, line: int
    ) -> Classified:
        groups = m.groupdict()
        kind = rule.kind
        label = groups.get("label")
        if kind == "archaic-labeled-loop":
            found = _ARCHAIC_LABEL.search(statement)
            label = found.group(1) if found else label
        condition = groups.get("cond")
        if condition:
            condition = _strip_parens(condition)
        if rule.degraded:
            tag = re.sub(r"\s+", " ", condition or "") or None
        else:
            tag = self.extract_tag(kind, statement)
        result = Classified(
            kind,
            rule.action,
            text,
            line,
            tag=tag,
            label=label,
            condition=condition or None,
            trailing=groups.get("trailing"),
            expects=rule.expects,
        )
        self.logger.debug("Line %d classified as %s (%s)", line, kind, rule.action)
        return result

    @staticmethod
    def extract_tag(kind: str | None, statement: str) -> str | None:
        """Extract the symbolic tag for `kind` from a statement, if any."""
        for regex in _TAG_REGEXES.get(kind or "", []):
            m = regex.search(statement)
            if m:
                tag = m.group(1)
                if kind in ("conditional", "where-loop", "selection", "loop"):
                    tag = _strip_parens(tag)
                return re.sub(r"\s+", " ", tag.strip())
        return None
