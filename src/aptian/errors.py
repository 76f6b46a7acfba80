"""Exception taxonomy for repository operations."""

from pathlib import Path


class AptianError(Exception):
    """Base class for all fatal repository errors."""


class FormatError(AptianError, ValueError):
    """Malformed control stanza or missing required field."""


class ConflictError(AptianError):
    """A different package already occupies a pool path."""

    def __init__(self, pool_path: Path, source: Path):
        self.pool_path = pool_path
        self.source = source
        super().__init__(
            f"pool file '{pool_path}' already exists with different contents, refusing to replace it with '{source}'"
        )


class UsageError(AptianError):
    """Bad arguments or a directory that is not in the expected state."""


class ConfigError(AptianError):
    """Repository configuration file is absent or malformed."""


class CollaboratorError(AptianError):
    """An external tool or facility failed on a file."""

    action = "process"

    def __init__(self, path: Path | str, detail: str = "", returncode: int | None = None):
        self.path = Path(path)
        self.detail = detail
        self.returncode = returncode
        message = f"failed to {self.action} '{self.path}'"
        if returncode is not None:
            message += f" (exit status {returncode})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ExtractionError(CollaboratorError):
    action = "extract control stanza from"


class DigestError(CollaboratorError):
    action = "compute digests of"


class CompressionError(CollaboratorError):
    action = "compress"


class SigningError(CollaboratorError):
    action = "sign"
