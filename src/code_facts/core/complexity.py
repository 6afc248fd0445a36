"""Cyclomatic complexity and nesting depth of clause bodies."""

from code_facts.core.syntax import children, iter_nodes, keyword_block
from code_facts.models import CallNode, SyntaxNode

_MULTI_BRANCH = frozenset({"case", "cond"})

_CONDITIONALS = frozenset({"if", "unless"})

_SHORT_CIRCUIT = frozenset({"and", "or", "&&", "||"})

_NESTING_CONSTRUCTS = frozenset({"with", "case", "cond", "if", "unless", "try", "receive", "for", "fn"})


def compute_complexity(body: SyntaxNode) -> int:
    """Return 1 plus the number of decision points found anywhere in *body*."""
    return 1 + sum(_decision_points(node) for node in iter_nodes(body))


def compute_max_nesting_depth(body: SyntaxNode) -> int:
    """Return the deepest level of nested control constructs in *body*."""
    deepest = 0
    stack: list[tuple[SyntaxNode, int]] = [(body, 0)]
    while stack:
        node, parent_depth = stack.pop()
        depth = parent_depth + 1 if _introduces_nesting(node) else parent_depth
        deepest = max(deepest, depth)
        stack.extend((child, depth) for child in children(node))
    return deepest


def _introduces_nesting(node: SyntaxNode) -> bool:
    return isinstance(node, CallNode) and node.name in _NESTING_CONSTRUCTS


def _decision_points(node: SyntaxNode) -> int:
    if not isinstance(node, CallNode):
        return 0
    name = node.name

    if name in _MULTI_BRANCH:
        clauses = keyword_block(node, "do")
        return max(0, len(clauses) - 1) if clauses is not None else 0

    if name == "receive":
        clauses = keyword_block(node, "do")
        points = max(0, len(clauses) - 1) if clauses is not None else 0
        if keyword_block(node, "after") is not None:
            points += 1
        return points

    if name in _CONDITIONALS:
        return 1

    if name == "with":
        matches = sum(1 for arg in node.args if isinstance(arg, CallNode) and arg.name == "<-")
        else_clauses = keyword_block(node, "else")
        return matches + (len(else_clauses) if else_clauses is not None else 0)

    if name == "try":
        rescue = keyword_block(node, "rescue")
        catch = keyword_block(node, "catch")
        return (len(rescue) if rescue is not None else 0) + (len(catch) if catch is not None else 0)

    if name in _SHORT_CIRCUIT and len(node.args) == 2:
        return 1

    return 0
