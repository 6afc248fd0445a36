from pathlib import Path

from pydantic import ValidationError

from code_facts.errors import BundleDecodeError
from code_facts.models import ModuleBundle


class JsonBundleDecoder:
    """Decode module bundles serialised as JSON with ``ModuleBundle.model_dump_json``.

    The artifact is the path of the JSON file.
    """

    def decode(self, artifact: str) -> ModuleBundle:
        try:
            raw = Path(artifact).read_bytes()
        except OSError as exc:
            raise BundleDecodeError(artifact, str(exc)) from exc
        try:
            return ModuleBundle.model_validate_json(raw)
        except ValidationError as exc:
            raise BundleDecodeError(artifact, f"invalid bundle ({exc.error_count()} errors)") from exc
