"""
Tree rewriting passes.

`prune` removes whole subtrees from a parsed tree: every node for which the
predicate holds is dropped from its parent's branch together with all of its
descendants. Surviving siblings keep their relative order, nodes are never
reparented, and the predicate is never called on a removed subtree.

Passes are applied one after another with `apply_passes`. Passes with
disjoint predicates commute; when they overlap (for instance removing
assignments can leave a loop empty, which `is_empty_loop` then removes) the
order given is the order applied.

Example:
    >>> removed = prune(root, kind_is("using"))
    >>> apply_passes(root, [assigns_to(r"^debug_"), is_empty_loop])
"""

import re
from collections.abc import Callable, Iterable

from fortree.fortree_ast import Node
from fortree.fortree_constants import LOOP_KINDS

Predicate = Callable[[Node], bool]


def prune(root: Node, predicate: Predicate) -> int:
    """Remove every descendant of `root` matching `predicate`, in place.

    The root itself is never removed.

    Returns:
        int: Number of subtree roots removed.
    """
    removed = 0
    for _, branch in root.branches():
        kept: list[Node] = []
        for child in branch:
            if predicate(child):
                removed += 1
            else:
                kept.append(child)
        branch[:] = kept
        for child in kept:
            removed += prune(child, predicate)
    return removed


def apply_passes(root: Node, predicates: Iterable[Predicate]) -> int:
    """Run one prune pass per predicate, in order. Returns the total removed."""
    return sum(prune(root, predicate) for predicate in predicates)


def kind_is(*kinds: str) -> Predicate:
    wanted = frozenset(kinds)

    def predicate(node: Node) -> bool:
        return node.kind in wanted

    return predicate


def assigns_to(pattern: str) -> Predicate:
    """Match assignment nodes whose left-hand side matches `pattern`."""
    regex = re.compile(pattern, re.IGNORECASE)

    def predicate(node: Node) -> bool:
        return (
            node.kind == "assignment"
            and node.tag is not None
            and regex.search(node.tag) is not None
        )

    return predicate


def is_empty_loop(node: Node) -> bool:
    return node.kind in LOOP_KINDS and not any(True for _ in node.iter_children())
