"""Error kinds raised by the ripdoc pipeline and their process exit codes."""


class RipdocError(Exception):
    """Base class for fatal pipeline failures."""

    exit_code = 1


class InvalidConfiguration(RipdocError):
    """Conflicting flags, unknown search domains or malformed config values."""

    exit_code = 2


class TargetNotFound(RipdocError):
    """The requested crate, file or sub-path cannot be located."""

    exit_code = 3


class IrUnavailable(RipdocError):
    """The documentation compiler failed or produced no IR."""

    exit_code = 4


class UnsupportedSchema(RipdocError):
    """The IR document is present but of an incompatible format version."""

    exit_code = 5
