from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Meta = dict[str, Any]

FunctionKind = Literal["def", "defp", "defmacro", "defmacrop"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Syntax tree
# ---------------------------------------------------------------------------


class AtomNode(_Frozen):
    type: Literal["atom"] = "atom"
    value: str


class ConstNode(_Frozen):
    type: Literal["const"] = "const"
    value: int | float | str


class VarNode(_Frozen):
    type: Literal["var"] = "var"
    name: str
    meta: Meta = Field(default_factory=dict)
    context: str | None = None


class AliasNode(_Frozen):
    type: Literal["alias"] = "alias"
    parts: list[str]
    meta: Meta = Field(default_factory=dict)


class CallNode(_Frozen):
    """Local call, operator or special form applied to an argument list."""

    type: Literal["call"] = "call"
    name: str
    meta: Meta = Field(default_factory=dict)
    args: list[SyntaxNode] = Field(default_factory=list)


class RemoteCallNode(_Frozen):
    type: Literal["remote"] = "remote"
    module: SyntaxNode
    function: str
    meta: Meta = Field(default_factory=dict)
    args: list[SyntaxNode] = Field(default_factory=list)


class AnonCallNode(_Frozen):
    type: Literal["anon_call"] = "anon_call"
    fun: SyntaxNode
    meta: Meta = Field(default_factory=dict)
    args: list[SyntaxNode] = Field(default_factory=list)


class PairNode(_Frozen):
    type: Literal["pair"] = "pair"
    left: SyntaxNode
    right: SyntaxNode


class ListNode(_Frozen):
    type: Literal["list"] = "list"
    items: list[SyntaxNode] = Field(default_factory=list)


SyntaxNode = Annotated[
    AtomNode | ConstNode | VarNode | AliasNode | CallNode | RemoteCallNode | AnonCallNode | PairNode | ListNode,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Type terms
# ---------------------------------------------------------------------------


class TypeForm(_Frozen):
    tag: Literal["type"] = "type"
    name: str
    args: list[TypeTerm] | Literal["any"] = Field(default_factory=list)
    line: int = 0


class RemoteTypeForm(_Frozen):
    tag: Literal["remote_type"] = "remote_type"
    module: str
    name: str
    args: list[TypeTerm] = Field(default_factory=list)
    line: int = 0


class UserTypeForm(_Frozen):
    tag: Literal["user_type"] = "user_type"
    name: str
    args: list[TypeTerm] = Field(default_factory=list)
    line: int = 0


class AtomForm(_Frozen):
    tag: Literal["atom"] = "atom"
    value: str
    line: int = 0


class IntegerForm(_Frozen):
    tag: Literal["integer"] = "integer"
    value: int
    line: int = 0


class VarForm(_Frozen):
    tag: Literal["var"] = "var"
    name: str
    line: int = 0


class AnnTypeForm(_Frozen):
    tag: Literal["ann_type"] = "ann_type"
    var: VarForm
    inner: TypeTerm
    line: int = 0


class OpForm(_Frozen):
    tag: Literal["op"] = "op"
    operator: str
    operands: list[TypeTerm] = Field(default_factory=list)
    line: int = 0


TypeTerm = Annotated[
    TypeForm | RemoteTypeForm | UserTypeForm | AtomForm | IntegerForm | VarForm | AnnTypeForm | OpForm,
    Field(discriminator="tag"),
]


# ---------------------------------------------------------------------------
# Module bundle
# ---------------------------------------------------------------------------


class Clause(_Frozen):
    line: int = 0
    meta: Meta = Field(default_factory=dict)
    params: list[SyntaxNode] = Field(default_factory=list)
    guard: SyntaxNode | None = None
    body: SyntaxNode


class FunctionDefinition(_Frozen):
    name: str
    arity: int
    kind: FunctionKind = "def"
    clauses: list[Clause] = Field(default_factory=list)


class SpecForm(_Frozen):
    kind: Literal["spec", "callback"] = "spec"
    name: str
    arity: int
    line: int = 0
    clauses: list[TypeTerm] = Field(default_factory=list)


class TypeAliasForm(_Frozen):
    kind: Literal["type", "typep", "opaque"] = "type"
    name: str
    params: list[TypeTerm] = Field(default_factory=list)
    line: int = 0
    body: TypeTerm


class StructFieldForm(_Frozen):
    field: str
    default: SyntaxNode | None = None


class ModuleBundle(_Frozen):
    module: str
    source_path: str = ""
    definitions: list[FunctionDefinition] = Field(default_factory=list)
    specs: list[SpecForm] = Field(default_factory=list)
    types: list[TypeAliasForm] = Field(default_factory=list)
    struct_fields: list[StructFieldForm] | None = None


for _model in (CallNode, RemoteCallNode, AnonCallNode, PairNode, ListNode, Clause, StructFieldForm):
    _model.model_rebuild()  # necessary for recursive types

for _model in (TypeForm, RemoteTypeForm, UserTypeForm, AnnTypeForm, OpForm, SpecForm, TypeAliasForm):
    _model.model_rebuild()

ModuleBundle.model_rebuild()
