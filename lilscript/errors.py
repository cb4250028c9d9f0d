"""Exceptions raised while converting scripts."""


class LilscriptError(Exception):
    """Base class for all conversion errors."""

    pass


class ParseError(LilscriptError):
    """The source document could not be turned into a Script."""

    pass


class UnbalancedGroup(ParseError):
    """A ``{`` group is never closed, so block boundaries are ambiguous."""

    def __init__(self, line: int, message: str | None = None):
        self.line = line
        super().__init__(message or f"Unbalanced group: '{{' opened on line {line} is never closed")


class UnsupportedDirection(ParseError):
    """The requested source/target pair is not implemented."""

    def __init__(self, source: str, target: str):
        self.source = source
        self.target = target
        super().__init__(f"Unsupported conversion: {source} -> {target} (only tex -> md is implemented)")

    @property
    def requested_conversion(self) -> str:
        return f"{self.source}->{self.target}"


class ExportError(LilscriptError):
    """A Script could not be rendered."""

    pass


class UnknownFormat(LilscriptError):
    """A file path has no recognizable format extension."""

    pass


class ConfigError(LilscriptError):
    """A configuration file could not be read or validated."""

    pass
