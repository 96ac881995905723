"""Exception types for the release pipeline."""


class ReleaseError(Exception):
    """Base exception for release pipeline errors. Always fatal for the run."""

    pass


class ConfigError(ReleaseError):
    """Profile or config file missing, unreadable, or failing schema validation."""

    pass


class InputNotFoundError(ReleaseError):
    """Source weight file not found in the working directory or its parent."""

    pass


class QuantizeError(ReleaseError):
    """Quantize executable missing or exited with a nonzero status."""

    def __init__(self, message: str, level: str | None = None, returncode: int | None = None):
        super().__init__(message)
        self.level = level
        self.returncode = returncode


class InvalidArtifactError(ReleaseError):
    """Quantized output is empty or does not start with the GGUF magic."""

    pass


class RepoEnsureError(ReleaseError):
    """Hub repository could not be created or confirmed."""

    pass


class UploadError(ReleaseError):
    """Folder upload to the hub failed."""

    pass
