from collections.abc import Iterable, Mapping

from code_facts.errors import BundleDecodeError
from code_facts.models import ModuleBundle


class InMemoryBundleDecoder:
    """Serve already-built bundles keyed by module name."""

    def __init__(self, bundles: Mapping[str, ModuleBundle] | None = None) -> None:
        self._bundles: dict[str, ModuleBundle] = dict(bundles or {})

    @classmethod
    def from_bundles(cls, bundles: Iterable[ModuleBundle]) -> "InMemoryBundleDecoder":
        return cls({b.module: b for b in bundles})

    def add(self, bundle: ModuleBundle) -> None:
        self._bundles[bundle.module] = bundle

    @property
    def artifacts(self) -> list[str]:
        return list(self._bundles)

    def decode(self, artifact: str) -> ModuleBundle:
        try:
            return self._bundles[artifact]
        except KeyError:
            raise BundleDecodeError(artifact, "no such bundle") from None
