"""Traversal and normalisation helpers for decoded syntax trees."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from pydantic import BaseModel

from code_facts.models import (
    AliasNode,
    AnonCallNode,
    AtomNode,
    CallNode,
    ListNode,
    PairNode,
    RemoteCallNode,
    SyntaxNode,
    VarNode,
)

T = TypeVar("T")

POSITION_KEYS: frozenset[str] = frozenset(
    {"line", "column", "counter", "file", "end_of_expression", "newlines", "closing", "do", "end"}
)

_ERLANG_BOOLEAN_OPS = {"andalso": "and", "orelse": "or"}


def children(node: SyntaxNode) -> list[SyntaxNode]:
    if isinstance(node, CallNode):
        return list(node.args)
    if isinstance(node, RemoteCallNode):
        return [node.module, *node.args]
    if isinstance(node, AnonCallNode):
        return [node.fun, *node.args]
    if isinstance(node, PairNode):
        return [node.left, node.right]
    if isinstance(node, ListNode):
        return list(node.items)
    return []


def iter_nodes(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield every node of the tree in depth-first pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def collect(node: SyntaxNode, visit: Callable[[SyntaxNode], tuple[T | None, bool]]) -> list[T]:
    """Walk the tree in pre-order, gathering the non-None results of *visit*.

    *visit* returns ``(result, descend)``; when ``descend`` is False the
    subtree below the visited node is not walked.
    """
    results: list[T] = []
    stack = [node]
    while stack:
        current = stack.pop()
        result, descend = visit(current)
        if result is not None:
            results.append(result)
        if descend:
            stack.extend(reversed(children(current)))
    return results


def node_line(node: SyntaxNode) -> int:
    meta = getattr(node, "meta", None)
    if not meta:
        return 0
    line = meta.get("line", 0)
    return line if isinstance(line, int) else 0


def max_line(node: SyntaxNode) -> int:
    return max((node_line(n) for n in iter_nodes(node)), default=0)


def transform(node: SyntaxNode, fn: Callable[[SyntaxNode], tuple[SyntaxNode, bool]]) -> SyntaxNode:
    """Rebuild the tree bottom-up after applying *fn* to each node top-down.

    *fn* returns ``(replacement, descend)``; children of the replacement are
    only transformed when ``descend`` is True. The walk keeps its own stack,
    so body depth is not bounded by the interpreter recursion limit.
    """
    result: list[SyntaxNode] = []
    # (replacement, children still to visit in reverse, rebuilt children, parent output)
    frames: list[tuple[SyntaxNode, list[SyntaxNode], list[SyntaxNode], list[SyntaxNode]]] = []

    def _enter(n: SyntaxNode, out: list[SyntaxNode]) -> None:
        replacement, descend = fn(n)
        kids = children(replacement) if descend else []
        if kids:
            frames.append((replacement, kids[::-1], [], out))
        else:
            out.append(replacement)

    _enter(node, result)
    while frames:
        replacement, remaining, rebuilt, out = frames[-1]
        if remaining:
            _enter(remaining.pop(), rebuilt)
        else:
            frames.pop()
            out.append(_with_children(replacement, rebuilt))
    return result[0]


def strip_metadata(node: SyntaxNode) -> SyntaxNode:
    def _strip(n: SyntaxNode) -> tuple[SyntaxNode, bool]:
        if isinstance(n, (VarNode, AliasNode, CallNode, RemoteCallNode, AnonCallNode)) and n.meta:
            return n.model_copy(update={"meta": _without_position_keys(n.meta)}), True
        return n, True

    return transform(node, _strip)


def canonical_json(node: SyntaxNode | None) -> str:
    """Serialise *node* as compact sorted-key JSON with position metadata removed.

    Nodes are expanded from an explicit work stack rather than handed to
    ``model_dump``/``json.dumps``, which both give up on deeply nested bodies.
    """
    if node is None:
        return "null"
    out: list[str] = []
    stack: list[str | BaseModel] = [strip_metadata(node)]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
            continue
        parts: list[str | BaseModel] = ["{"]
        for index, name in enumerate(sorted(type(item).model_fields)):
            value = getattr(item, name)
            parts.append(("," if index else "") + _dumps(name) + ":")
            if isinstance(value, BaseModel):
                parts.append(value)
            elif isinstance(value, list) and value and all(isinstance(v, BaseModel) for v in value):
                parts.append("[")
                for position, element in enumerate(value):
                    if position:
                        parts.append(",")
                    parts.append(element)
                parts.append("]")
            else:
                parts.append(_dumps(value))
        parts.append("}")
        stack.extend(reversed(parts))
    return "".join(out)


def normalize_guard(node: SyntaxNode) -> SyntaxNode:
    """Rewrite compiler-expanded guard calls back to their source operators."""

    def _normalize(n: SyntaxNode) -> tuple[SyntaxNode, bool]:
        if isinstance(n, RemoteCallNode) and isinstance(n.module, AtomNode) and n.module.value == "erlang":
            name = _ERLANG_BOOLEAN_OPS.get(n.function, n.function)
            return CallNode(name=name, meta=n.meta, args=n.args), True
        return n, True

    return transform(node, _normalize)


def keyword_block(node: CallNode, key: str) -> list[SyntaxNode] | None:
    """Return the clause list stored under *key* in the trailing keyword list of *node*.

    ``case x do ... end`` is encoded as ``case(x, [do: [clauses]])``; a
    block holding a single expression is returned as a one-element list.
    """
    if not node.args or not isinstance(node.args[-1], ListNode):
        return None
    for item in node.args[-1].items:
        if isinstance(item, PairNode) and isinstance(item.left, AtomNode) and item.left.value == key:
            if isinstance(item.right, ListNode):
                return list(item.right.items)
            return [item.right]
    return None


def _with_children(node: SyntaxNode, kids: list[SyntaxNode]) -> SyntaxNode:
    if isinstance(node, CallNode):
        return node.model_copy(update={"args": kids})
    if isinstance(node, RemoteCallNode):
        return node.model_copy(update={"module": kids[0], "args": kids[1:]})
    if isinstance(node, AnonCallNode):
        return node.model_copy(update={"fun": kids[0], "args": kids[1:]})
    if isinstance(node, PairNode):
        return node.model_copy(update={"left": kids[0], "right": kids[1]})
    if isinstance(node, ListNode):
        return node.model_copy(update={"items": kids})
    return node


def _without_position_keys(meta: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in meta.items() if k not in POSITION_KEYS}


def _dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
