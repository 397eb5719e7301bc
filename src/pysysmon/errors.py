"""Exceptions raised by the pysysmon sampling engine."""


class SamplerError(Exception):
    """Base class for all pysysmon errors."""


class SnapshotError(SamplerError):
    """A stat record could not be obtained; the entity is treated as gone."""


class ProcfsIOError(SnapshotError):
    """A procfs entry vanished or could not be read."""

    def __init__(self, path, cause: OSError | None = None) -> None:
        self.path = str(path)
        self.cause = cause
        detail = f": {cause.strerror or cause}" if cause is not None else ""
        super().__init__(f"cannot read {self.path}{detail}")


class StatParseError(SnapshotError):
    """A stat record was malformed."""


class ProcessNotFound(SamplerError):
    """No live process carries the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"no live process named {name!r}")


class InvalidArgument(SamplerError, ValueError):
    """A public operation was called with an unusable argument."""


class InvalidInterval(SamplerError):
    """No time elapsed since the previous tick."""
