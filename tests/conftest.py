import textwrap
from collections.abc import Callable

import pytest

from fortree.fortree_ast import Node
from fortree.fortree_parser import parse_source


@pytest.fixture  # type: ignore[misc]
def parse() -> Callable[..., Node]:
    """Parse a dedented source snippet into a tree."""

    def _parse(source: str, **kwargs: object) -> Node:
        return parse_source(textwrap.dedent(source).strip("\n"), **kwargs)  # type: ignore[arg-type]

    return _parse
