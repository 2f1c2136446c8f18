"""
Shared constants for the fortree front end.

Markers of the input dialect, the closed set of node kinds, the keyword
tables the statement classifier expands into rules, and the bounded unroll
depth used to approximate nested parentheses with a flat regular expression.

Exports:
    - COMMENT_MARKER, FIXED_FORM_COMMENT_MARKERS, CONTINUATION_MARKER, PREPROCESSOR_MARKER
    - NODE_KINDS, PROGRAM_UNIT_KINDS, LOOP_KINDS
    - DECLARATION_KEYWORDS, PREPROCESSOR_DIRECTIVES, STATIC_TRUE_CONDITIONS
    - PAREN_UNROLL_DEPTH
"""

COMMENT_MARKER = "!"
FIXED_FORM_COMMENT_MARKERS = ("*",)
CONTINUATION_MARKER = "&"
PREPROCESSOR_MARKER = "#"
QUOTE_CHARS = ("'", '"')

# Bounded unrolling of the balanced-parenthesis fragment. Expressions nested
# deeper than this are only partially matched.
PAREN_UNROLL_DEPTH = 4

NODE_KINDS: frozenset[str] = frozenset(
    {
        "root",
        "module",
        "program",
        "function",
        "subroutine",
        "conditional",
        "selection",
        "loop",
        "archaic-labeled-loop",
        "where-loop",
        "declaration",
        "using",
        "implicit",
        "call",
        "assignment",
        "stop",
        "return",
        "cycle",
        "exit",
        "continue",
        "goto",
        "format",
        "read",
        "write",
        "print",
        "allocate",
        "empty",
        "preprocessor-directive",
    }
)

PROGRAM_UNIT_KINDS: frozenset[str] = frozenset(
    {"module", "program", "function", "subroutine"}
)

LOOP_KINDS: frozenset[str] = frozenset({"loop", "archaic-labeled-loop", "where-loop"})

# One classifier rule is generated per entry, in this order. Multi-word
# keywords come first so "double precision" is never read as a name.
DECLARATION_KEYWORDS: tuple[str, ...] = (
    "double precision",
    "double complex",
    "integer",
    "real",
    "complex",
    "logical",
    "character",
    "type(",
    "class(",
    "parameter",
    "dimension",
    "allocatable",
    "pointer",
    "target",
    "optional",
    "intent",
    "external",
    "intrinsic",
    "save",
    "data",
    "common",
    "equivalence",
    "namelist",
    "private",
    "public",
    "sequence",
    "contains",
)

PREPROCESSOR_DIRECTIVES: tuple[str, ...] = (
    "if",
    "ifdef",
    "ifndef",
    "elif",
    "else",
    "endif",
    "define",
    "undef",
    "include",
)

STATIC_TRUE_CONDITIONS: frozenset[str] = frozenset({"1", "true", ".true."})
