"""
Hands a parsed fortree tree over to a code-emission backend.

The backend itself lives outside this package. Any object satisfying the
`Emitter` protocol can be plugged in: the `Transpiler` walks the tree in
pre-order and calls the emitter's `emit_<kind>` method for every node
(hyphens in kind names become underscores, so an archaic labeled loop is sent
to `emit_archaic_labeled_loop`). The emitter reaches into `node.children`,
`node.else_children` and `node.cases` itself when it needs block structure.

Example:
    >>> transpiler = Transpiler(MyCppEmitter())
    >>> output_code = transpiler.transpile(root)

Raises:
    TypeError: If the transpiler is handed something other than a Node.
    NotImplementedError: If the emitter lacks an `emit_*` method for a node kind.
"""

from typing import Protocol

from fortree.fortree_ast import Node


class Emitter(Protocol):  # pragma: no cover
    """Protocol for code-emission backends.

    Methods:
        get_output(): Returns the complete emitted code as a string.
    """

    def get_output(self) -> str: ...  # pragma: no cover


class Transpiler:
    """Dispatches fortree nodes to a backend emitter.

    Attributes:
        emitter (Emitter): The backend receiving `emit_*` calls.
    """

    def __init__(self, emitter: Emitter) -> None:
        self.emitter = emitter

    def transpile(self, root: Node) -> str:
        """Walks the tree rooted at `root` and returns the emitter's output.

        Raises:
            TypeError: If `root` is not a Node.
        """
        if not isinstance(root, Node):
            raise TypeError("Transpiler expects a Node tree.")
        for node in root.walk():
            self._visit(node)
        return self.emitter.get_output()

    def _visit(self, node: Node) -> None:
        method_name = f"emit_{node.kind.replace('-', '_')}"
        if hasattr(self.emitter, method_name):
            getattr(self.emitter, method_name)(node)
        else:
            raise NotImplementedError(
                f"No emitter method for node kind '{node.kind}' (line {node.origin})"
            )
