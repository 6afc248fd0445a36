"""Call graph extraction from function clause bodies."""

from __future__ import annotations

from collections.abc import Iterable

from code_facts.core.syntax import collect, node_line
from code_facts.facts import CallEdge, Callee, Caller
from code_facts.models import (
    AliasNode,
    AtomNode,
    CallNode,
    ConstNode,
    FunctionDefinition,
    RemoteCallNode,
    SyntaxNode,
    VarNode,
)

# Special forms, operators and definition keywords that are shaped like
# local calls but never dispatch to a function of the enclosing module.
NON_CALL_FORMS: frozenset[str] = frozenset(
    {
        # structural
        "__block__",
        "__aliases__",
        "__MODULE__",
        "__ENV__",
        "__DIR__",
        "__CALLER__",
        "__STACKTRACE__",
        "__cursor__",
        "{}",
        "%{}",
        "%",
        "<<>>",
        "::",
        "->",
        "<-",
        "when",
        "@",
        "&",
        "^",
        ".",
        # control flow
        "fn",
        "do",
        "end",
        "case",
        "cond",
        "if",
        "unless",
        "try",
        "receive",
        "after",
        "rescue",
        "catch",
        "else",
        "for",
        "with",
        "raise",
        "reraise",
        "throw",
        "super",
        # metaprogramming
        "quote",
        "unquote",
        "unquote_splicing",
        "import",
        "require",
        "alias",
        "use",
        # definitions
        "def",
        "defp",
        "defmacro",
        "defmacrop",
        "defmodule",
        "defstruct",
        "defguard",
        "defguardp",
        "defdelegate",
        "defexception",
        "defoverridable",
        "defimpl",
        "defprotocol",
        "defcallback",
        "defmacrocallback",
        # operators
        "=",
        "==",
        "!=",
        "===",
        "!==",
        "<",
        ">",
        "<=",
        ">=",
        "+",
        "-",
        "*",
        "/",
        "**",
        "++",
        "--",
        "<>",
        "..",
        "//",
        "|>",
        "|",
        "=~",
        "\\\\",
        "and",
        "or",
        "not",
        "&&",
        "||",
        "!",
        "in",
        "<<<",
        ">>>",
        "~>",
        "<~",
        "<~>",
        "~~~",
        "&&&",
        "|||",
        "^^^",
    }
)


def extract_calls(definitions: Iterable[FunctionDefinition], module: str, source_file: str) -> list[CallEdge]:
    """Extract call edges from every clause body of every definition."""
    calls: list[CallEdge] = []
    for definition in definitions:
        calls.extend(extract_calls_from_definition(definition, module, source_file))
    return calls


def extract_calls_from_definition(definition: FunctionDefinition, module: str, source_file: str) -> list[CallEdge]:
    def _visit(node: SyntaxNode) -> tuple[CallEdge | None, bool]:
        classified = _classify(node, module)
        if classified is None:
            return None, True
        edge_type, callee, descend = classified
        caller = Caller(
            module=module,
            function=definition.name,
            arity=definition.arity,
            kind=definition.kind,
            file=source_file,
            line=node_line(node),
        )
        return CallEdge(type=edge_type, caller=caller, callee=callee), descend

    edges: list[CallEdge] = []
    for clause in definition.clauses:
        edges.extend(collect(clause.body, _visit))
    return edges


def normalize_module(node: SyntaxNode) -> str | None:
    """Return the dotted module name a reference points to, or None when it is not a module."""
    if isinstance(node, AtomNode):
        return node.value.removeprefix("Elixir.")
    if isinstance(node, AliasNode) and node.parts:
        return ".".join(node.parts)
    return None


def _classify(node: SyntaxNode, module: str) -> tuple[str, Callee, bool] | None:
    """Classify *node* as a call site.

    Returns ``(edge_type, callee, descend)`` or None for nodes that are not calls.
    Captures return ``descend=False`` so the wrapped reference is not reported twice.
    """
    if isinstance(node, CallNode) and node.name == "&":
        return _classify_capture(node, module)

    if isinstance(node, RemoteCallNode):
        callee_module = normalize_module(node.module)
        if callee_module is None:
            return None
        callee = Callee(module=callee_module, function=node.function, arity=len(node.args))
        return _edge_type(callee_module, module), callee, True

    if isinstance(node, CallNode) and node.name not in NON_CALL_FORMS:
        return "local", Callee(module=module, function=node.name, arity=len(node.args)), True

    return None


def _edge_type(callee_module: str, module: str) -> str:
    # a qualified call into the enclosing module is still a local edge
    return "local" if callee_module == module else "remote"


def _classify_capture(node: CallNode, module: str) -> tuple[str, Callee, bool] | None:
    if len(node.args) != 1:
        return None
    target = node.args[0]
    if not (isinstance(target, CallNode) and target.name == "/" and len(target.args) == 2):
        return None
    ref, arity_node = target.args
    if not (isinstance(arity_node, ConstNode) and isinstance(arity_node.value, int)):
        return None
    arity = arity_node.value

    if isinstance(ref, RemoteCallNode):
        callee_module = normalize_module(ref.module)
        if callee_module is None:
            return None
        callee = Callee(module=callee_module, function=ref.function, arity=arity)
        return _edge_type(callee_module, module), callee, False

    if isinstance(ref, VarNode) and ref.name not in NON_CALL_FORMS:
        return "local", Callee(module=module, function=ref.name, arity=arity), False

    return None
