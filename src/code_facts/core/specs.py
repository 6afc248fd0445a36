"""Spec, callback and type alias extraction, plus correlation with function facts."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from code_facts.core.types import format_type, parse_type
from code_facts.facts import (
    AnyType,
    FunctionFact,
    FunctionSpec,
    SpecClause,
    SpecRecord,
    TypeAliasRecord,
    TypeDescriptor,
)
from code_facts.models import SpecForm, TypeAliasForm, TypeForm, TypeTerm, VarForm

# Introspection function generated for every module; never user-specified.
RESERVED_INTROSPECTION_NAME = "__info__"

_ALIAS_KINDS = {"type": "public", "typep": "private", "opaque": "opaque"}
_ALIAS_PREFIXES = {"type": "@type", "typep": "@typep", "opaque": "@opaque"}


def parse_spec_clause(term: TypeTerm, name: str, kind: str) -> SpecClause:
    """Parse one spec clause into descriptors and its formatted strings."""
    if isinstance(term, TypeForm) and term.name == "bounded_fun" and isinstance(term.args, list) and term.args:
        # the ``when`` constraints are not carried over
        term = term.args[0]

    inputs: list[TypeDescriptor] = []
    returns: TypeDescriptor = AnyType()
    if isinstance(term, TypeForm) and term.name == "fun" and isinstance(term.args, list) and len(term.args) == 2:
        product, ret = term.args
        if isinstance(product, TypeForm) and product.name == "product" and isinstance(product.args, list):
            inputs = [parse_type(t) for t in product.args]
            returns = parse_type(ret)

    inputs_string = [format_type(i) for i in inputs]
    return_string = format_type(returns)
    prefix = "@callback" if kind == "callback" else "@spec"
    return SpecClause(
        inputs=inputs,
        returns=returns,
        inputs_string=inputs_string,
        return_string=return_string,
        full=f"{prefix} {name}({', '.join(inputs_string)}) :: {return_string}",
    )


def extract_specs(forms: Iterable[SpecForm]) -> list[SpecRecord]:
    return [
        SpecRecord(
            name=form.name,
            arity=form.arity,
            kind=form.kind,
            line=form.line,
            clauses=[parse_spec_clause(c, form.name, form.kind) for c in form.clauses],
        )
        for form in forms
    ]


def extract_type_aliases(forms: Iterable[TypeAliasForm]) -> list[TypeAliasRecord]:
    records = []
    for form in forms:
        params = [p.name if isinstance(p, VarForm) else "_" for p in form.params]
        descriptor = parse_type(form.body)
        definition = f"{_ALIAS_PREFIXES[form.kind]} {form.name}({', '.join(params)}) :: {format_type(descriptor)}"
        records.append(
            TypeAliasRecord(
                name=form.name,
                kind=_ALIAS_KINDS[form.kind],
                params=params,
                line=form.line,
                descriptor=descriptor,
                definition=definition,
            )
        )
    return records


def first_clause_spec(record: SpecRecord) -> FunctionSpec:
    """Collapse a spec record to its first clause; later clauses are dropped."""
    if not record.clauses:
        return FunctionSpec(kind=record.kind, line=record.line)
    clause = record.clauses[0]
    return FunctionSpec(
        kind=record.kind,
        line=record.line,
        inputs_string=clause.inputs_string,
        return_string=clause.return_string,
        full=clause.full,
    )


def correlate_specs(functions: Mapping[str, FunctionFact], specs: Iterable[SpecRecord]) -> dict[str, FunctionFact]:
    """Attach the matching spec (by name and arity) to every function fact."""
    by_signature: dict[tuple[str, int], FunctionSpec] = {}
    for record in specs:
        if record.name == RESERVED_INTROSPECTION_NAME:
            continue
        by_signature.setdefault((record.name, record.arity), first_clause_spec(record))

    return {
        key: fact.model_copy(update={"spec": by_signature.get((fact.name, fact.arity))})
        for key, fact in functions.items()
    }
