import logging

from code_facts.core.calls import extract_calls
from code_facts.core.functions import extract_functions, read_source_lines
from code_facts.core.specs import correlate_specs, extract_specs, extract_type_aliases
from code_facts.core.structs import extract_struct
from code_facts.facts import ModuleFacts
from code_facts.models import ModuleBundle

logger = logging.getLogger(__name__)


def extract_module(bundle: ModuleBundle) -> ModuleFacts:
    """Run every extractor over one decoded module bundle.

    The only I/O is a single read of the module's source file for hashing.
    """
    source_lines = read_source_lines(bundle.source_path)

    calls = extract_calls(bundle.definitions, bundle.module, bundle.source_path)
    functions = extract_functions(bundle.definitions, bundle.module, bundle.source_path, source_lines)
    specs = extract_specs(bundle.specs)
    types = extract_type_aliases(bundle.types)

    facts = ModuleFacts(
        module=bundle.module,
        calls=calls,
        functions=correlate_specs(functions, specs),
        specs=specs,
        types=types,
        struct=extract_struct(bundle.struct_fields),
    )
    logger.debug(
        "extracted %s: %d calls, %d clauses, %d specs, %d types",
        bundle.module,
        len(facts.calls),
        len(facts.functions),
        len(facts.specs),
        len(facts.types),
    )
    return facts
