from code_facts.decoders.json_bundle import JsonBundleDecoder
from code_facts.decoders.memory import InMemoryBundleDecoder

__all__ = ["InMemoryBundleDecoder", "JsonBundleDecoder"]
