"""Parse raw type terms into descriptors and format descriptors as type syntax.

The same engine serves ``@spec``/``@callback`` clauses and type alias bodies.
Parsing never raises: shapes without a rule become ``AnyType``.

Descriptor grammar:

- ``union``    -- ``integer() | atom()``
- ``tuple``    -- ``{atom(), integer()}`` or ``tuple()``
- ``list``     -- ``[integer()]`` or ``list()``
- ``map``      -- ``%{name: String.t()}`` or ``map()``
- ``function`` -- ``(integer() -> atom())``
- ``type_ref`` -- ``String.t()`` or ``t()``
- ``literal``  -- ``:ok``, ``42``, ``[]``
- ``builtin``  -- ``integer()``, ``nonempty_list(atom())``
- ``var``      -- ``a`` in polymorphic specs
- ``any``      -- ``any()``
"""

from __future__ import annotations

from code_facts.core.render import format_atom, format_keyword_key
from code_facts.facts import (
    AnyType,
    BuiltinType,
    FunctionType,
    ListType,
    LiteralType,
    MapField,
    MapType,
    TupleType,
    TypeDescriptor,
    TypeRef,
    UnionType,
    VarType,
)
from code_facts.models import (
    AnnTypeForm,
    AtomForm,
    IntegerForm,
    OpForm,
    RemoteTypeForm,
    TypeForm,
    TypeTerm,
    UserTypeForm,
    VarForm,
)


def parse_type(term: TypeTerm) -> TypeDescriptor:
    if isinstance(term, TypeForm):
        return _parse_type_form(term)
    if isinstance(term, RemoteTypeForm):
        return TypeRef(
            module=term.module.removeprefix("Elixir."),
            name=term.name,
            args=[parse_type(a) for a in term.args],
        )
    if isinstance(term, UserTypeForm):
        return TypeRef(module=None, name=term.name, args=[parse_type(a) for a in term.args])
    if isinstance(term, AtomForm):
        return LiteralType(kind="atom", value=term.value)
    if isinstance(term, IntegerForm):
        return LiteralType(kind="integer", value=term.value)
    if isinstance(term, VarForm):
        return VarType(name=term.name)
    if isinstance(term, AnnTypeForm):
        return parse_type(term.inner)
    if isinstance(term, OpForm):
        return _parse_op(term)
    return AnyType()


def _parse_type_form(term: TypeForm) -> TypeDescriptor:
    name, args = term.name, term.args

    if args == "any":
        if name == "tuple":
            return TupleType(elements=None)
        if name == "map":
            return MapType(fields=None)
        return AnyType()

    if name == "union":
        return UnionType(types=[parse_type(a) for a in args])
    if name == "tuple":
        return TupleType(elements=[parse_type(a) for a in args])
    if name == "list" and len(args) <= 1:
        return ListType(element=parse_type(args[0]) if args else None)
    if name == "nil" and not args:
        return LiteralType(kind="list", value=None)
    if name == "map":
        return MapType(fields=[_parse_map_field(a) for a in args])
    if name == "fun":
        return _parse_fun(args)
    if name == "bounded_fun" and args:
        # constraints from the ``when`` part are discarded
        return parse_type(args[0])
    return BuiltinType(name=name, args=[parse_type(a) for a in args])


def _parse_fun(args: list[TypeTerm]) -> TypeDescriptor:
    if not args:
        return FunctionType(inputs=None, returns=AnyType())
    if len(args) != 2:
        return AnyType()
    params, ret = args
    if isinstance(params, TypeForm) and params.name == "product" and isinstance(params.args, list):
        return FunctionType(inputs=[parse_type(p) for p in params.args], returns=parse_type(ret))
    if isinstance(params, TypeForm) and params.name == "any":
        return FunctionType(inputs=None, returns=parse_type(ret))
    return AnyType()


def _parse_map_field(term: TypeTerm) -> MapField:
    if isinstance(term, TypeForm) and isinstance(term.args, list) and len(term.args) == 2:
        key, value = term.args
        if term.name == "map_field_exact":
            return MapField(kind="exact", key=parse_type(key), value=parse_type(value))
        if term.name == "map_field_assoc":
            return MapField(kind="assoc", key=parse_type(key), value=parse_type(value))
    return MapField(kind="unknown", key=AnyType(), value=AnyType())


def _parse_op(term: OpForm) -> TypeDescriptor:
    if term.operator == "-" and len(term.operands) == 1 and isinstance(term.operands[0], IntegerForm):
        return LiteralType(kind="integer", value=-term.operands[0].value)
    return AnyType()


def format_type(descriptor: TypeDescriptor) -> str:
    if isinstance(descriptor, BuiltinType):
        return f"{descriptor.name}({_join(descriptor.args)})"
    if isinstance(descriptor, LiteralType):
        return _format_literal(descriptor)
    if isinstance(descriptor, TypeRef):
        prefix = f"{descriptor.module}." if descriptor.module else ""
        return f"{prefix}{descriptor.name}({_join(descriptor.args)})"
    if isinstance(descriptor, UnionType):
        return _join(descriptor.types, " | ")
    if isinstance(descriptor, TupleType):
        if descriptor.elements is None:
            return "tuple()"
        return "{" + _join(descriptor.elements) + "}"
    if isinstance(descriptor, ListType):
        if descriptor.element is None:
            return "list()"
        return f"[{format_type(descriptor.element)}]"
    if isinstance(descriptor, MapType):
        if descriptor.fields is None:
            return "map()"
        return "%{" + ", ".join(_format_map_field(f) for f in descriptor.fields) + "}"
    if isinstance(descriptor, FunctionType):
        return _format_fun(descriptor)
    if isinstance(descriptor, VarType):
        return descriptor.name
    if isinstance(descriptor, AnyType):
        return "any()"
    return "term()"


def _format_literal(descriptor: LiteralType) -> str:
    if descriptor.kind == "atom":
        return format_atom(str(descriptor.value))
    if descriptor.kind == "integer":
        return str(descriptor.value)
    return "[]"


def _format_fun(descriptor: FunctionType) -> str:
    if descriptor.inputs is None:
        if isinstance(descriptor.returns, AnyType):
            return "fun()"
        return f"(... -> {format_type(descriptor.returns)})"
    if not descriptor.inputs:
        return f"(-> {format_type(descriptor.returns)})"
    return f"({_join(descriptor.inputs)} -> {format_type(descriptor.returns)})"


def _format_map_field(field: MapField) -> str:
    if field.kind == "exact":
        value = format_type(field.value)
        if isinstance(field.key, LiteralType) and field.key.kind == "atom":
            return f"{format_keyword_key(str(field.key.value))}: {value}"
        return f"{format_type(field.key)} => {value}"
    if field.kind == "assoc":
        return f"optional({format_type(field.key)}) => {format_type(field.value)}"
    return "term() => term()"


def _join(descriptors: list[TypeDescriptor], separator: str = ", ") -> str:
    return separator.join(format_type(d) for d in descriptors)
