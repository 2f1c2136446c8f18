"""
Conditional-compilation filter.

Drops the logical lines of a `#else` branch whose `#if` condition is
statically true. Only a literal truthy condition (`#if 1`, `#if true`,
`#if .true.`) charges the filter. The directive lines themselves always stay
in the output so the backend still sees them.

States:
    discharged: no statically-true conditional is open.
    charged: inside the taken branch of a statically-true `#if`.
    ablaze: inside the dead `#else` branch; lines are dropped.
"""

import logging
import re

from fortree.fortree_constants import STATIC_TRUE_CONDITIONS
from fortree.fortree_lines import LogicalLine

DISCHARGED = "discharged"
CHARGED = "charged"
ABLAZE = "ablaze"

_IF_RE = re.compile(r"^#\s*if\s+(.+?)\s*$", re.IGNORECASE)
_ELSE_RE = re.compile(r"^#\s*else\b", re.IGNORECASE)
_ENDIF_RE = re.compile(r"^#\s*endif\b", re.IGNORECASE)


def filter_conditionals(
    lines: list[LogicalLine], logger: logging.Logger | None = None
) -> list[LogicalLine]:
    """Return `lines` without those in a statically dead `#else` branch."""
    logger = logger or logging.getLogger("fortree.preproc")
    state = DISCHARGED
    kept: list[LogicalLine] = []

    for line in lines:
        text = line.text
        m = _IF_RE.match(text)
        if m:
            if state == DISCHARGED and m.group(1).lower() in STATIC_TRUE_CONDITIONS:
                state = CHARGED
            kept.append(line)
        elif _ELSE_RE.match(text):
            if state == CHARGED:
                state = ABLAZE
            kept.append(line)
        elif _ENDIF_RE.match(text):
            state = DISCHARGED
            kept.append(line)
        elif state == ABLAZE:
            logger.debug("Dropping line %d in dead #else branch", line.start_line)
        else:
            kept.append(line)
    return kept
