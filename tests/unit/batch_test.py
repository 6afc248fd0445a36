"""Unit tests for batch orchestration."""

from __future__ import annotations

import logging

import pytest

from code_facts.config import ExtractionSettings
from code_facts.core.batch import extract_artifact, merge_outcomes, run_extraction
from code_facts.decoders import InMemoryBundleDecoder
from code_facts.errors import BundleDecodeError, EmptyBatchError
from code_facts.models import ModuleBundle, StructFieldForm
from tests.builders import bundle, call, clause, definition, remote


def _twin(module: str) -> ModuleBundle:
    """Two modules with byte-identical function definitions."""
    return bundle(module, definition("run", clause(remote("IO", "puts", call("msg")), line=5)))


class _ExplodingDecoder:
    def decode(self, artifact: str) -> ModuleBundle:
        raise RuntimeError(f"boom in {artifact}")


@pytest.mark.asyncio
async def test_merges_modules_without_key_collisions(thread_settings: ExtractionSettings) -> None:
    decoder = InMemoryBundleDecoder.from_bundles([_twin("Alpha"), _twin("Beta")])

    result = await run_extraction(["Alpha", "Beta"], decoder, thread_settings)

    assert sorted(result.functions) == ["Alpha.run/0:5", "Beta.run/0:5"]
    assert result.functions["Alpha.run/0:5"].structure_hash == result.functions["Beta.run/0:5"].structure_hash
    assert len(result.calls) == 4
    assert result.stats.modules_processed == 2
    assert result.stats.modules_succeeded == 2
    assert result.stats.total_functions == 2
    assert result.stats.total_calls == 4
    assert result.stats.extraction_time_ms is not None


@pytest.mark.asyncio
async def test_failed_artifact_does_not_abort_batch(
    thread_settings: ExtractionSettings, caplog: pytest.LogCaptureFixture
) -> None:
    decoder = InMemoryBundleDecoder.from_bundles([_twin("Alpha")])

    with caplog.at_level(logging.WARNING, logger="code_facts"):
        result = await run_extraction(["Alpha", "Missing"], decoder, thread_settings)

    assert list(result.functions) == ["Alpha.run/0:5"]
    assert result.stats.modules_processed == 2
    assert result.stats.modules_succeeded == 1
    assert result.stats.modules_failed == 1
    assert any("Missing" in r.getMessage() for r in caplog.records if r.levelno == logging.WARNING)


@pytest.mark.asyncio
async def test_unexpected_worker_errors_are_counted(thread_settings: ExtractionSettings) -> None:
    result = await run_extraction(["A", "B"], _ExplodingDecoder(), thread_settings)
    assert result.stats.modules_failed == 2
    assert result.functions == {}


@pytest.mark.asyncio
async def test_empty_batch_is_rejected(thread_settings: ExtractionSettings) -> None:
    with pytest.raises(EmptyBatchError):
        await run_extraction([], InMemoryBundleDecoder(), thread_settings)


@pytest.mark.asyncio
async def test_process_pool(memory_decoder: InMemoryBundleDecoder) -> None:
    memory_decoder.add(_twin("Alpha"))
    memory_decoder.add(_twin("Beta"))

    result = await run_extraction(
        memory_decoder.artifacts, memory_decoder, ExtractionSettings(max_workers=2, executor="process")
    )

    assert result.stats.modules_succeeded == 2
    assert sorted(result.functions) == ["Alpha.run/0:5", "Beta.run/0:5"]


def test_merge_collects_specs_types_and_structs() -> None:
    with_struct = bundle("User", struct_fields=[StructFieldForm(field="id")])
    decoder = InMemoryBundleDecoder.from_bundles([with_struct, bundle("Plain")])
    outcomes = [extract_artifact(decoder, "User"), extract_artifact(decoder, "Plain")]

    result = merge_outcomes(["User", "Plain"], outcomes)

    assert set(result.specs) == {"User", "Plain"}
    assert set(result.types) == {"User", "Plain"}
    assert list(result.structs) == ["User"]
    assert result.stats.total_structs == 1


def test_merge_counts_failures() -> None:
    result = merge_outcomes(["a"], [BundleDecodeError("a", "bad")])
    assert result.stats.modules_failed == 1
    assert result.stats.modules_processed == 1
