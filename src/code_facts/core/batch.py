import asyncio
import logging
import time
from collections.abc import Sequence
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from functools import partial

from code_facts.config import ExtractionSettings, get_settings
from code_facts.core.extract import extract_module
from code_facts.core.ports.decoder import BundleDecoder
from code_facts.errors import EmptyBatchError
from code_facts.facts import ExtractionResult, ExtractionStats, ModuleFacts

logger = logging.getLogger(__name__)


def extract_artifact(decoder: BundleDecoder, artifact: str) -> ModuleFacts:
    """Decode one artifact and extract its facts. Runs inside a pool worker."""
    return extract_module(decoder.decode(artifact))


def _make_executor(settings: ExtractionSettings) -> Executor:
    if settings.executor == "process":
        return ProcessPoolExecutor(max_workers=settings.max_workers)
    return ThreadPoolExecutor(max_workers=settings.max_workers, thread_name_prefix="code-facts")


async def run_extraction(
    artifacts: Sequence[str],
    decoder: BundleDecoder,
    settings: ExtractionSettings | None = None,
) -> ExtractionResult:
    """Extract facts from every artifact in parallel and merge them into one result.

    A failing artifact is logged and counted; it never aborts the batch.
    Raises EmptyBatchError when ``artifacts`` is empty.
    """
    if not artifacts:
        raise EmptyBatchError("no artifacts to process")
    settings = settings or get_settings()

    logger.info(
        "extracting %d artifacts with %d %s workers",
        len(artifacts),
        settings.max_workers,
        settings.executor,
    )
    started = time.perf_counter()

    loop = asyncio.get_running_loop()
    with _make_executor(settings) as executor:
        outcomes = await asyncio.gather(
            *(loop.run_in_executor(executor, partial(extract_artifact, decoder, a)) for a in artifacts),
            return_exceptions=True,
        )

    result = merge_outcomes(artifacts, outcomes)
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    stats = result.stats.with_extraction_time(elapsed_ms)
    logger.info(
        "extracted %d/%d modules in %d ms (%d failed)",
        stats.modules_succeeded,
        stats.modules_processed,
        elapsed_ms,
        stats.modules_failed,
    )
    return result.model_copy(update={"stats": stats})


def merge_outcomes(
    artifacts: Sequence[str],
    outcomes: Sequence[ModuleFacts | BaseException],
) -> ExtractionResult:
    calls = []
    functions = {}
    specs = {}
    types = {}
    structs = {}
    stats = ExtractionStats()

    for artifact, outcome in zip(artifacts, outcomes, strict=True):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            logger.warning("failed to extract %s: %s", artifact, outcome)
            stats = stats.record_failure()
            continue

        calls.extend(outcome.calls)
        for key, fact in outcome.functions.items():
            functions[f"{outcome.module}.{key}"] = fact
        specs[outcome.module] = outcome.specs
        types[outcome.module] = outcome.types
        if outcome.struct is not None:
            structs[outcome.module] = outcome.struct
        stats = stats.record_success(outcome)

    return ExtractionResult(
        calls=calls,
        functions=functions,
        specs=specs,
        types=types,
        structs=structs,
        stats=stats,
    )
