"""Render syntax trees back to source-like text."""

from __future__ import annotations

import re
from typing import cast

from code_facts.models import (
    AliasNode,
    AnonCallNode,
    AtomNode,
    CallNode,
    ConstNode,
    ListNode,
    PairNode,
    RemoteCallNode,
    SyntaxNode,
    VarNode,
)

_BINARY_PRECEDENCE: dict[str, int] = {
    "<-": 10,
    "\\\\": 10,
    "when": 20,
    "::": 30,
    "|": 40,
    "=>": 50,
    "=": 70,
    "||": 80,
    "|||": 80,
    "or": 80,
    "&&": 90,
    "&&&": 90,
    "and": 90,
    "==": 100,
    "!=": 100,
    "=~": 100,
    "===": 100,
    "!==": 100,
    "<": 110,
    ">": 110,
    "<=": 110,
    ">=": 110,
    "|>": 120,
    "<<<": 120,
    ">>>": 120,
    "<~": 120,
    "~>": 120,
    "<~>": 120,
    "in": 130,
    "^^^": 140,
    "++": 150,
    "--": 150,
    "+++": 150,
    "---": 150,
    "..": 150,
    "<>": 150,
    "+": 160,
    "-": 160,
    "*": 170,
    "/": 170,
    "**": 180,
}

_RIGHT_ASSOCIATIVE = frozenset({"<-", "when", "::", "|", "=>", "=", "++", "--", "+++", "---", "..", "<>", "**"})

_UNARY_OPERATORS = frozenset({"-", "+", "!", "not", "^", "~~~"})

_IDENTIFIER_ATOM = re.compile(r"^[A-Za-z_][A-Za-z0-9_@]*[?!]?$")

_BARE_ATOMS = frozenset({"true", "false", "nil"})


def format_atom(value: str) -> str:
    """Render an atom the way the language prints it (``:ok``, ``nil``, ``Foo.Bar``)."""
    if value in _BARE_ATOMS:
        return value
    if value.startswith("Elixir."):
        return value[len("Elixir.") :]
    if _IDENTIFIER_ATOM.match(value) or value in _BINARY_PRECEDENCE or value in _UNARY_OPERATORS:
        return f":{value}"
    return ':"' + _escape(value) + '"'


def format_module(node: SyntaxNode) -> str:
    if isinstance(node, AliasNode):
        return ".".join(node.parts)
    if isinstance(node, AtomNode):
        return format_atom(node.value)
    return to_source(node)


def to_source(node: SyntaxNode) -> str:
    if isinstance(node, AtomNode):
        return format_atom(node.value)
    if isinstance(node, ConstNode):
        return _format_const(node.value)
    if isinstance(node, VarNode):
        return node.name
    if isinstance(node, AliasNode):
        return ".".join(node.parts)
    if isinstance(node, PairNode):
        return f"{{{to_source(node.left)}, {to_source(node.right)}}}"
    if isinstance(node, ListNode):
        return _format_list(node.items)
    if isinstance(node, RemoteCallNode):
        target = f"{format_module(node.module)}.{node.function}"
        if not node.args and node.meta.get("no_parens"):
            return target
        return f"{target}({_format_args(node.args)})"
    if isinstance(node, AnonCallNode):
        return f"{to_source(node.fun)}.({_format_args(node.args)})"
    return _format_call(node)


def _format_call(node: CallNode) -> str:
    name, args = node.name, node.args

    if name == "{}":
        return "{" + ", ".join(to_source(a) for a in args) + "}"
    if name == "%{}":
        return "%{" + _format_map_entries(args) + "}"
    if name == "%" and len(args) == 2:
        struct_map = args[1]
        entries = struct_map.args if isinstance(struct_map, CallNode) and struct_map.name == "%{}" else [struct_map]
        return f"%{to_source(args[0])}{{{_format_map_entries(entries)}}}"
    if name == "<<>>":
        return "<<" + ", ".join(to_source(a) for a in args) + ">>"
    if name == "__block__":
        return "\n".join(to_source(a) for a in args)
    if name == "@" and len(args) == 1:
        return "@" + to_source(args[0])
    if name == "&" and len(args) == 1:
        return _format_capture(args[0])
    if name == "fn":
        return "fn " + "; ".join(to_source(a) for a in args) + " end"
    if name == "->" and len(args) == 2:
        params = args[0].items if isinstance(args[0], ListNode) else [args[0]]
        head = ", ".join(to_source(p) for p in params)
        return f"{head} -> {to_source(args[1])}" if head else f"-> {to_source(args[1])}"
    if name in _UNARY_OPERATORS and len(args) == 1:
        operand = to_source(args[0])
        if _binary_precedence(args[0]) is not None:
            operand = f"({operand})"
        return f"{name} {operand}" if name == "not" else f"{name}{operand}"
    if name in _BINARY_PRECEDENCE and len(args) == 2:
        return _format_binary(name, args[0], args[1])
    return f"{name}({_format_args(args)})"


def _format_binary(op: str, left: SyntaxNode, right: SyntaxNode) -> str:
    prec = _BINARY_PRECEDENCE[op]
    right_assoc = op in _RIGHT_ASSOCIATIVE
    left_text = to_source(left)
    right_text = to_source(right)

    left_prec = _binary_precedence(left)
    if left_prec is not None and (left_prec < prec or (left_prec == prec and right_assoc)):
        left_text = f"({left_text})"
    right_prec = _binary_precedence(right)
    if right_prec is not None and (right_prec < prec or (right_prec == prec and not right_assoc)):
        right_text = f"({right_text})"

    if op == "..":
        return f"{left_text}..{right_text}"
    return f"{left_text} {op} {right_text}"


def _binary_precedence(node: SyntaxNode) -> int | None:
    if isinstance(node, CallNode) and len(node.args) == 2:
        return _BINARY_PRECEDENCE.get(node.name)
    return None


def _format_capture(target: SyntaxNode) -> str:
    if isinstance(target, ConstNode) and isinstance(target.value, int):
        return f"&{target.value}"
    if isinstance(target, CallNode) and target.name == "/" and len(target.args) == 2:
        ref, arity = target.args
        if isinstance(ref, RemoteCallNode) and not ref.args:
            return f"&{format_module(ref.module)}.{ref.function}/{to_source(arity)}"
        if isinstance(ref, VarNode):
            return f"&{ref.name}/{to_source(arity)}"
        if isinstance(ref, CallNode) and not ref.args:
            return f"&{ref.name}/{to_source(arity)}"
    return f"&({to_source(target)})"


def _format_list(items: list[SyntaxNode]) -> str:
    if not items:
        return "[]"
    if _is_keyword_list(items):
        return "[" + _format_keywords(items) + "]"
    *head, last = items
    parts = [to_source(i) for i in head]
    if isinstance(last, CallNode) and last.name == "|" and len(last.args) == 2:
        parts.append(f"{to_source(last.args[0])} | {to_source(last.args[1])}")
    else:
        parts.append(to_source(last))
    return "[" + ", ".join(parts) + "]"


def _format_args(args: list[SyntaxNode]) -> str:
    if args and isinstance(args[-1], ListNode) and args[-1].items and _is_keyword_list(args[-1].items):
        rendered = [to_source(a) for a in args[:-1]]
        rendered.append(_format_keywords(args[-1].items))
        return ", ".join(rendered)
    return ", ".join(to_source(a) for a in args)


def _format_map_entries(entries: list[SyntaxNode]) -> str:
    if len(entries) == 1 and isinstance(entries[0], CallNode) and entries[0].name == "|" and len(entries[0].args) == 2:
        base, updates = entries[0].args
        update_items = updates.items if isinstance(updates, ListNode) else [updates]
        return f"{to_source(base)} | {_format_map_entries(update_items)}"
    parts = []
    for entry in entries:
        if isinstance(entry, PairNode):
            if isinstance(entry.left, AtomNode):
                parts.append(f"{format_keyword_key(entry.left.value)}: {to_source(entry.right)}")
            else:
                parts.append(f"{to_source(entry.left)} => {to_source(entry.right)}")
        else:
            parts.append(to_source(entry))
    return ", ".join(parts)


def _is_keyword_list(items: list[SyntaxNode]) -> bool:
    return all(isinstance(i, PairNode) and isinstance(i.left, AtomNode) for i in items)


def _format_keywords(items: list[SyntaxNode]) -> str:
    # callers check _is_keyword_list first
    pairs = cast("list[PairNode]", items)
    return ", ".join(f"{format_keyword_key(cast(AtomNode, p.left).value)}: {to_source(p.right)}" for p in pairs)


def format_keyword_key(value: str) -> str:
    """Render an atom in keyword or map-key position, quoting it unless it is a plain identifier."""
    return value if _IDENTIFIER_ATOM.match(value) else '"' + _escape(value) + '"'


def _format_const(value: int | float | str) -> str:
    if isinstance(value, str):
        return '"' + _escape(value) + '"'
    return repr(value)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\t", "\\t")
