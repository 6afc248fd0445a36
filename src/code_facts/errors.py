class BundleDecodeError(Exception):
    """Raised by a decoder when an artifact cannot be turned into a module bundle."""

    def __init__(self, artifact: str, reason: str) -> None:
        super().__init__(artifact, reason)
        self.artifact = artifact
        self.reason = reason

    def __str__(self) -> str:
        return f"Cannot decode {self.artifact}: {self.reason}"


class EmptyBatchError(ValueError):
    """Raised before any worker starts when there is nothing to process."""
