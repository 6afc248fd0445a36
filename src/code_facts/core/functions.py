"""Per-clause function facts: location, rendered heads, metrics and hashes."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from pathlib import Path

from code_facts.core.complexity import compute_complexity, compute_max_nesting_depth
from code_facts.core.render import to_source
from code_facts.core.syntax import canonical_json, max_line, normalize_guard
from code_facts.facts import FunctionFact
from code_facts.models import Clause, FunctionDefinition

logger = logging.getLogger(__name__)


def extract_functions(
    definitions: Iterable[FunctionDefinition],
    module: str,
    source_file: str,
    source_lines: list[bytes] | None = None,
) -> dict[str, FunctionFact]:
    """Return one fact per clause, keyed by ``"name/arity:line"``."""
    facts: dict[str, FunctionFact] = {}
    for definition in definitions:
        for clause in definition.clauses:
            fact = extract_clause_fact(definition, clause, module, source_file, source_lines)
            facts[fact.key] = fact
    return facts


def extract_clause_fact(
    definition: FunctionDefinition,
    clause: Clause,
    module: str,
    source_file: str,
    source_lines: list[bytes] | None = None,
) -> FunctionFact:
    line = clause_line(clause)
    start_line, end_line = compute_line_range(clause)
    return FunctionFact(
        module=module,
        name=definition.name,
        arity=definition.arity,
        line=line,
        start_line=start_line,
        end_line=end_line,
        kind=definition.kind,
        source_file=make_relative_path(source_file),
        source_file_absolute=source_file,
        guard_text=render_guard(clause),
        pattern_text=render_pattern(clause),
        source_hash=compute_source_hash(source_lines, start_line, end_line),
        structure_hash=compute_structure_hash(clause),
        complexity=compute_complexity(clause.body),
        max_nesting_depth=compute_max_nesting_depth(clause.body),
    )


def clause_line(clause: Clause) -> int:
    if clause.line:
        return clause.line
    line = clause.meta.get("line", 0)
    return line if isinstance(line, int) else 0


def compute_line_range(clause: Clause) -> tuple[int, int]:
    """Return ``(start_line, end_line)``; synthesized bodies collapse to the declared line."""
    start = clause_line(clause)
    body_end = max_line(clause.body)
    return start, max(start, body_end)


def render_guard(clause: Clause) -> str | None:
    if clause.guard is None:
        return None
    return to_source(normalize_guard(clause.guard))


def render_pattern(clause: Clause) -> str:
    return ", ".join(to_source(param) for param in clause.params)


def read_source_lines(source_file: str) -> list[bytes] | None:
    if not source_file:
        return None
    try:
        return Path(source_file).read_bytes().split(b"\n")
    except OSError as exc:
        logger.debug("Source %s unavailable for hashing: %s", source_file, exc)
        return None


def compute_source_hash(source_lines: list[bytes] | None, start_line: int, end_line: int) -> str | None:
    """SHA-256 of the verbatim source lines ``start_line..end_line`` (1-based, inclusive)."""
    if source_lines is None or start_line < 1:
        return None
    chunk = b"\n".join(source_lines[start_line - 1 : end_line])
    return hashlib.sha256(chunk).hexdigest()


def compute_structure_hash(clause: Clause) -> str:
    """SHA-256 of the clause parameters, guard and body with position metadata stripped."""
    params = ",".join(canonical_json(p) for p in clause.params)
    encoded = f'{{"body":{canonical_json(clause.body)},"guard":{canonical_json(clause.guard)},"params":[{params}]}}'
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def make_relative_path(source_file: str) -> str:
    """Shorten an absolute source path to its ``lib/...`` or ``test/...`` suffix."""
    for root in ("lib", "test"):
        if source_file.startswith(f"{root}/"):
            return source_file
        marker = f"/{root}/"
        if marker in source_file:
            return f"{root}/" + source_file.rsplit(marker, 1)[1]
    return Path(source_file).name
