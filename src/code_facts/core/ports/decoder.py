from typing import Protocol

from code_facts.models import ModuleBundle


class BundleDecoder(Protocol):
    def decode(self, artifact: str) -> ModuleBundle: ...
