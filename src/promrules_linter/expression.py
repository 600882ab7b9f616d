"""PromQL expression adapter and metric-name extraction.

The expression tree comes from the ``promql-parser`` library. Each of its
node types is wrapped in ``PromQLNode``, which exposes the two capabilities
the extractor needs: the selector name of the node (instant or range
selectors only) and its sub-expressions. ``walk`` visits every node of a
wrapped tree; ``extract_metric_names`` collects the selector names.

Selectors written only with a ``__name__`` label matcher, such as
``{__name__="up"}``, carry no positional name and are not reported.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any

import promql_parser

from promrules_linter.exceptions import RuleParseError
from promrules_linter.protocols import ExpressionNode


class NodeKind(str, Enum):
    """Closed set of PromQL node kinds known to the walker."""

    VECTOR_SELECTOR = "vector_selector"
    MATRIX_SELECTOR = "matrix_selector"
    AGGREGATE = "aggregate"
    BINARY = "binary"
    CALL = "call"
    PAREN = "paren"
    UNARY = "unary"
    SUBQUERY = "subquery"
    LITERAL = "literal"
    OTHER = "other"


_KIND_BY_TYPE: tuple[tuple[type, NodeKind], ...] = (
    (promql_parser.VectorSelector, NodeKind.VECTOR_SELECTOR),
    (promql_parser.MatrixSelector, NodeKind.MATRIX_SELECTOR),
    (promql_parser.AggregateExpr, NodeKind.AGGREGATE),
    (promql_parser.BinaryExpr, NodeKind.BINARY),
    (promql_parser.Call, NodeKind.CALL),
    (promql_parser.ParenExpr, NodeKind.PAREN),
    (promql_parser.UnaryExpr, NodeKind.UNARY),
    (promql_parser.SubqueryExpr, NodeKind.SUBQUERY),
    (promql_parser.NumberLiteral, NodeKind.LITERAL),
    (promql_parser.StringLiteral, NodeKind.LITERAL),
)

# Attributes holding sub-expressions, per node kind.
_CHILD_ATTRS: dict[NodeKind, tuple[str, ...]] = {
    NodeKind.AGGREGATE: ("param", "expr"),
    NodeKind.BINARY: ("lhs", "rhs"),
    NodeKind.CALL: ("args",),
    NodeKind.PAREN: ("expr",),
    NodeKind.UNARY: ("expr",),
    NodeKind.SUBQUERY: ("expr",),
}


def classify(node: Any) -> NodeKind:
    for node_type, kind in _KIND_BY_TYPE:
        if isinstance(node, node_type):
            return kind
    return NodeKind.OTHER


class PromQLNode:
    """Wraps one promql-parser node behind the ExpressionNode capabilities."""

    __slots__ = ("raw", "kind")

    def __init__(self, raw: Any) -> None:
        self.raw = raw
        self.kind = classify(raw)

    def selector_name(self) -> str | None:
        if self.kind == NodeKind.VECTOR_SELECTOR:
            return self.raw.name or None
        if self.kind == NodeKind.MATRIX_SELECTOR:
            return self.raw.vector_selector.name or None
        return None

    def children(self) -> list[PromQLNode]:
        result: list[PromQLNode] = []
        for attr in _CHILD_ATTRS.get(self.kind, ()):
            value = getattr(self.raw, attr, None)
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                result.extend(PromQLNode(item) for item in value if item is not None)
            else:
                result.append(PromQLNode(value))
        return result

    def __repr__(self) -> str:
        return f"PromQLNode(kind={self.kind.value})"


class PromQLExpressionParser:
    """Parses rule queries with promql-parser."""

    def parse(self, query: str) -> PromQLNode:
        try:
            expr = promql_parser.parse(query)
        except ValueError as exc:
            raise RuleParseError(query, f"failed to parse rule {query!r}: {exc}") from exc
        return PromQLNode(expr)


def walk(root: ExpressionNode) -> Iterator[ExpressionNode]:
    """Yield every node of the tree, depth first."""
    stack: list[ExpressionNode] = [root]
    while stack:
        node = stack.pop()
        yield node
        children: Iterable[ExpressionNode] = node.children()
        stack.extend(reversed(list(children)))


def extract_metric_names(root: ExpressionNode) -> set[str]:
    """Distinct metric names referenced by instant and range selectors."""
    names: set[str] = set()
    for node in walk(root):
        name = node.selector_name()
        if name:
            names.add(name)
    return names
