"""
Parse-time error taxonomy for fortree.

Every error raised while assembling, classifying or folding statements is
fatal: the run aborts and no partial tree is returned. All of them derive
from `FortreeSyntaxError`, itself a `SyntaxError`, so callers can catch the
whole family at once and still read `lineno` for the physical source line.

Classes:
    FortreeSyntaxError: Base class, carries the physical line number.
    ContinuationError: A continuation fragment has nothing to continue.
    UnclassifiableStatementError: No classifier rule matches a statement.
    BlockMismatchError: A closer does not match the innermost open block.
    UnterminatedBlockError: Input ended with blocks still open.
"""


class FortreeSyntaxError(SyntaxError):
    def __init__(self, message: str, line: int = 0) -> None:
        super().__init__(message)
        self.lineno = line

    def __str__(self) -> str:
        # Messages already carry the line; skip SyntaxError's "(line N)" suffix.
        return str(self.msg)


class ContinuationError(FortreeSyntaxError):
    def __init__(self, line: int, text: str) -> None:
        super().__init__(
            f"Line {line}: no preceding line to continue: {text!r}", line
        )
        self.text = text


class UnclassifiableStatementError(FortreeSyntaxError):
    def __init__(self, line: int, text: str) -> None:
        super().__init__(f"Line {line}: unclassifiable statement: {text!r}", line)
        self.text = text


class BlockMismatchError(FortreeSyntaxError):
    """Raised when a closer (or else/case) meets the wrong innermost block."""

    def __init__(self, expected: str, actual: str, text: str, line: int) -> None:
        super().__init__(
            f"Line {line}: expected open '{expected}' block but found '{actual}' "
            f"while processing {text!r}",
            line,
        )
        self.expected = expected
        self.actual = actual
        self.text = text


class UnterminatedBlockError(FortreeSyntaxError):
    def __init__(self, kind: str, line: int) -> None:
        super().__init__(
            f"Unterminated '{kind}' block opened at line {line}", line
        )
        self.kind = kind
