"""Unit tests for single-module extraction."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from code_facts.core.extract import extract_module
from code_facts.models import ModuleBundle, SpecForm, StructFieldForm, TypeAliasForm, TypeForm
from tests.builders import atom, bundle, call, capture_remote, clause, concat_chain, definition, fun_type, remote, t, var

ANY_MAP = TypeForm(name="map", args="any")


def _demo_bundle(source_path: str = "") -> ModuleBundle:
    return bundle(
        "Demo.Accounts",
        definition(
            "create",
            clause(
                remote("Repo", "insert", call("changeset", var("attrs", line=4), line=4), line=4),
                params=[var("attrs")],
                line=3,
            ),
        ),
        definition(
            "names",
            clause(
                remote("Enum", "map", var("users"), capture_remote("String", "upcase", 1)),
                params=[var("users")],
                line=8,
            ),
        ),
        definition("changeset", clause(atom("ok"), params=[var("attrs")], line=11), kind="defp"),
        source_path=source_path,
        specs=[SpecForm(name="create", arity=1, line=2, clauses=[fun_type([ANY_MAP], t("term"))])],
        types=[TypeAliasForm(name="id", body=t("pos_integer"), line=1)],
        struct_fields=[StructFieldForm(field="name")],
    )


def test_extract_module_runs_every_extractor() -> None:
    facts = extract_module(_demo_bundle())

    assert facts.module == "Demo.Accounts"
    assert sorted(facts.functions) == ["changeset/1:11", "create/1:3", "names/1:8"]
    assert [(c.type, c.callee.function) for c in facts.calls] == [
        ("remote", "insert"),
        ("local", "changeset"),
        ("remote", "map"),
        ("remote", "upcase"),
    ]
    assert [s.name for s in facts.specs] == ["create"]
    assert [a.definition for a in facts.types] == ["@type id() :: pos_integer()"]
    assert facts.struct is not None
    assert facts.struct.fields[0].field == "name"


def test_specs_are_correlated() -> None:
    facts = extract_module(_demo_bundle())
    assert facts.functions["create/1:3"].spec is not None
    assert facts.functions["create/1:3"].spec.full == "@spec create(map()) :: term()"
    assert facts.functions["names/1:8"].spec is None


def test_deeply_nested_body_is_extracted() -> None:
    deep = bundle("Deep", definition("run", clause(concat_chain(600, line=2), params=[var("s")], line=2)))

    facts = extract_module(deep)

    fact = facts.functions["run/1:2"]
    assert (fact.start_line, fact.end_line) == (2, 601)
    assert fact.complexity == 1
    assert len(fact.structure_hash) == 64
    assert [(c.type, c.callee.function) for c in facts.calls] == [("local", "fetch")]


def test_empty_bundle() -> None:
    facts = extract_module(bundle("Empty"))
    assert facts.calls == []
    assert facts.functions == {}
    assert facts.specs == []
    assert facts.types == []
    assert facts.struct is None


def test_source_hashes_use_source_file(tmp_path: Path) -> None:
    path = tmp_path / "lib" / "accounts.ex"
    path.parent.mkdir()
    path.write_text("\n".join(f"line {n}" for n in range(1, 13)), encoding="utf-8")

    facts = extract_module(_demo_bundle(str(path)))

    assert all(f.source_hash is not None for f in facts.functions.values())
    assert facts.functions["create/1:3"].source_file == "lib/accounts.ex"


def test_missing_source_file_is_logged_at_debug(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="code_facts"):
        facts = extract_module(_demo_bundle(str(tmp_path / "gone.ex")))

    assert all(f.source_hash is None for f in facts.functions.values())
    assert any("unavailable" in r.getMessage() and r.levelno == logging.DEBUG for r in caplog.records)
