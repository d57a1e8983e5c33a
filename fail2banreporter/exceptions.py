"""Exceptions raised by fail2banreporter."""


class ReporterError(Exception):
    pass


class ConfigError(ReporterError):
    """Base class for config lookup failures."""

    def __init__(self, path: str, message: str):
        super().__init__(f"Config '{path}': {message}")
        self.path = path


class ConfigNotFound(ConfigError):
    def __init__(self, path: str, segment: str):
        super().__init__(path, f"'{segment}' not found")
        self.segment = segment


class ConfigPathInvalid(ConfigError):
    def __init__(self, path: str, segment: str):
        super().__init__(path, f"'{segment}' is not an object")
        self.segment = segment


class ConfigTypeMismatch(ConfigError):
    def __init__(self, path: str, expected, value):
        name = getattr(expected, "__name__", str(expected))
        super().__init__(
            path, f"cannot convert {type(value).__name__} value to {name}"
        )
        self.expected = expected


class RowSourceError(ReporterError):
    pass


class RowSourceOpenFailure(RowSourceError):
    pass


class RowSourcePrepareFailure(RowSourceError):
    pass


class RowSourceStepFailure(RowSourceError):
    pass


class MetadataParseFailure(ReporterError):
    pass
