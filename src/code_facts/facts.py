from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from code_facts.models import FunctionKind


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Call graph
# ---------------------------------------------------------------------------


class Caller(_Frozen):
    module: str
    function: str
    arity: int
    kind: FunctionKind
    file: str
    line: int = 0


class Callee(_Frozen):
    module: str
    function: str
    arity: int


class CallEdge(_Frozen):
    type: Literal["local", "remote"]
    caller: Caller
    callee: Callee


# ---------------------------------------------------------------------------
# Type descriptors
# ---------------------------------------------------------------------------


class UnionType(_Frozen):
    type: Literal["union"] = "union"
    types: list[TypeDescriptor]


class TupleType(_Frozen):
    """Tuple type; ``elements`` is None for the ``tuple()`` sentinel."""

    type: Literal["tuple"] = "tuple"
    elements: list[TypeDescriptor] | None = None


class ListType(_Frozen):
    type: Literal["list"] = "list"
    element: TypeDescriptor | None = None


class MapField(_Frozen):
    kind: Literal["exact", "assoc", "unknown"]
    key: TypeDescriptor
    value: TypeDescriptor


class MapType(_Frozen):
    type: Literal["map"] = "map"
    fields: list[MapField] | None = None


class FunctionType(_Frozen):
    """Function type; ``inputs`` is None when the argument list is unconstrained."""

    type: Literal["function"] = "function"
    inputs: list[TypeDescriptor] | None = None
    returns: TypeDescriptor


class TypeRef(_Frozen):
    type: Literal["type_ref"] = "type_ref"
    module: str | None = None
    name: str
    args: list[TypeDescriptor] = Field(default_factory=list)


class LiteralType(_Frozen):
    type: Literal["literal"] = "literal"
    kind: Literal["atom", "integer", "list"]
    value: str | int | None = None


class BuiltinType(_Frozen):
    type: Literal["builtin"] = "builtin"
    name: str
    args: list[TypeDescriptor] = Field(default_factory=list)


class VarType(_Frozen):
    type: Literal["var"] = "var"
    name: str


class AnyType(_Frozen):
    type: Literal["any"] = "any"


TypeDescriptor = Annotated[
    UnionType | TupleType | ListType | MapType | FunctionType | TypeRef | LiteralType | BuiltinType | VarType | AnyType,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Specs and type aliases
# ---------------------------------------------------------------------------


class SpecClause(_Frozen):
    inputs: list[TypeDescriptor] = Field(default_factory=list)
    returns: TypeDescriptor = Field(default_factory=AnyType)
    inputs_string: list[str] = Field(default_factory=list)
    return_string: str = "any()"
    full: str = ""


class SpecRecord(_Frozen):
    name: str
    arity: int
    kind: Literal["spec", "callback"]
    line: int = 0
    clauses: list[SpecClause] = Field(default_factory=list)


class FunctionSpec(_Frozen):
    kind: Literal["spec", "callback"]
    line: int = 0
    inputs_string: list[str] = Field(default_factory=list)
    return_string: str = "any()"
    full: str = ""


class TypeAliasRecord(_Frozen):
    name: str
    kind: Literal["public", "private", "opaque"]
    params: list[str] = Field(default_factory=list)
    line: int = 0
    descriptor: TypeDescriptor
    definition: str


# ---------------------------------------------------------------------------
# Functions and structs
# ---------------------------------------------------------------------------


class FunctionFact(_Frozen):
    module: str
    name: str
    arity: int
    line: int
    start_line: int
    end_line: int
    kind: FunctionKind
    source_file: str
    source_file_absolute: str
    guard_text: str | None = None
    pattern_text: str = ""
    source_hash: str | None = None
    structure_hash: str
    complexity: int = Field(default=1, ge=1)
    max_nesting_depth: int = Field(default=0, ge=0)
    spec: FunctionSpec | None = None

    @property
    def key(self) -> str:
        return f"{self.name}/{self.arity}:{self.line}"


class StructField(_Frozen):
    field: str
    default: str = "nil"
    required: bool = False


class StructInfo(_Frozen):
    fields: list[StructField] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Per-module and batch results
# ---------------------------------------------------------------------------


class ModuleFacts(_Frozen):
    module: str
    calls: list[CallEdge] = Field(default_factory=list)
    functions: dict[str, FunctionFact] = Field(default_factory=dict)
    specs: list[SpecRecord] = Field(default_factory=list)
    types: list[TypeAliasRecord] = Field(default_factory=list)
    struct: StructInfo | None = None


class ExtractionStats(_Frozen):
    modules_processed: int = 0
    modules_succeeded: int = 0
    modules_failed: int = 0
    total_calls: int = 0
    total_functions: int = 0
    total_specs: int = 0
    total_types: int = 0
    total_structs: int = 0
    extraction_time_ms: int | None = None

    def record_success(self, facts: ModuleFacts) -> ExtractionStats:
        return self.model_copy(
            update={
                "modules_processed": self.modules_processed + 1,
                "modules_succeeded": self.modules_succeeded + 1,
                "total_calls": self.total_calls + len(facts.calls),
                "total_functions": self.total_functions + len(facts.functions),
                "total_specs": self.total_specs + len(facts.specs),
                "total_types": self.total_types + len(facts.types),
                "total_structs": self.total_structs + (1 if facts.struct else 0),
            }
        )

    def record_failure(self) -> ExtractionStats:
        return self.model_copy(
            update={
                "modules_processed": self.modules_processed + 1,
                "modules_failed": self.modules_failed + 1,
            }
        )

    def with_extraction_time(self, time_ms: int) -> ExtractionStats:
        return self.model_copy(update={"extraction_time_ms": time_ms})


class ExtractionResult(_Frozen):
    calls: list[CallEdge] = Field(default_factory=list)
    functions: dict[str, FunctionFact] = Field(default_factory=dict)
    specs: dict[str, list[SpecRecord]] = Field(default_factory=dict)
    types: dict[str, list[TypeAliasRecord]] = Field(default_factory=dict)
    structs: dict[str, StructInfo] = Field(default_factory=dict)
    stats: ExtractionStats = Field(default_factory=ExtractionStats)


for _model in (UnionType, TupleType, ListType, MapField, MapType, FunctionType, TypeRef, BuiltinType):
    _model.model_rebuild()  # necessary for recursive types

for _model in (SpecClause, TypeAliasRecord, ModuleFacts, ExtractionStats, ExtractionResult):
    _model.model_rebuild()
