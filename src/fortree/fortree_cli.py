"""
fortree CLI Entrypoint.

Parses one legacy source file and writes its syntax tree to stdout.

Features:
    - Text dump of the whole tree (default), or of a subtree located with
      one or more `--find KIND[:TAG]` steps.
    - Graphviz DOT (`--dot`) or JSON (`--json`) output instead of the dump.
    - Prune passes removing every node of a kind (`--prune KIND`, repeatable,
      applied in the order given).
    - `-v` / `--verbose` turns on debug logging on stderr.

Example usage:
    fortree solver.f90
    fortree solver.f90 --find module:solver --find subroutine:step
    fortree solver.f90 --prune using --prune implicit --dot > tree.dot

Exit status:
    0 on success, 1 on an unreadable or non-UTF-8 file, a parse error or an
    unmatched `--find` path, 2 on a usage error (reported by argparse before
    any parsing).
"""

import argparse
import json
import logging
import sys

from fortree.fortree_ast import Node
from fortree.fortree_errors import FortreeSyntaxError
from fortree.fortree_parser import parse_source
from fortree.fortree_prune import apply_passes, kind_is

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("fortree.cli")


def parse_path(steps: list[str]) -> list[tuple[str, str | None]]:
    """Turn `KIND[:TAG]` strings into (kind, tag) pairs for Node.find."""
    path: list[tuple[str, str | None]] = []
    for step in steps:
        kind, _, tag = step.partition(":")
        path.append((kind, tag or None))
    return path


def run_fortree(
    source_path: str,
    find: list[str] | None = None,
    prune: list[str] | None = None,
    output: str = "text",
) -> int:
    """
    Run the front end over one file and print the requested rendering.

    Args:
        source_path (str): Path of the source file.
        find (list[str] | None): `KIND[:TAG]` steps locating a subtree.
        prune (list[str] | None): Node kinds removed, one pass per kind.
        output (str): "text", "dot" or "json".

    Returns:
        int: Process exit status.
    """
    try:
        with open(source_path, encoding="utf-8") as f:
            source = f.read()
    except OSError as e:
        print(f"{source_path}: {e.strerror}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(
            f"{source_path}: not valid UTF-8 (byte {e.object[e.start]:#04x} "
            f"at offset {e.start})",
            file=sys.stderr,
        )
        return 1

    try:
        root = parse_source(source)
    except FortreeSyntaxError as e:
        print(f"{source_path}: {e}", file=sys.stderr)
        return 1

    if prune:
        removed = apply_passes(root, [kind_is(kind) for kind in prune])
        logger.info("Pruned %d subtree(s)", removed)

    node: Node | None = root
    if find:
        node = root.find(parse_path(find))
        if node is None:
            print(f"No node at path: {' / '.join(find)}", file=sys.stderr)
            return 1

    if output == "dot":
        print(node.to_dot())
    elif output == "json":
        print(json.dumps(node.to_dict(), indent=2))
    else:
        print(node.dump())
    return 0


def main() -> None:
    """Entry point for the fortree CLI."""
    parser = argparse.ArgumentParser(
        prog="fortree", description="Parse a legacy source file into a syntax tree."
    )
    parser.add_argument("source", help="Input source file")
    parser.add_argument(
        "--find",
        action="append",
        metavar="KIND[:TAG]",
        help="Print the subtree at this path (repeat for each level)",
    )
    parser.add_argument(
        "--prune",
        action="append",
        metavar="KIND",
        help="Remove every node of this kind before output (repeatable)",
    )
    fmt = parser.add_mutually_exclusive_group()
    fmt.add_argument(
        "--dot",
        dest="output",
        action="store_const",
        const="dot",
        help="Emit a Graphviz DOT graph",
    )
    fmt.add_argument(
        "--json",
        dest="output",
        action="store_const",
        const="json",
        help="Emit the tree as JSON",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    sys.exit(
        run_fortree(
            args.source,
            find=args.find,
            prune=args.prune,
            output=args.output or "text",
        )
    )


if __name__ == "__main__":
    main()
