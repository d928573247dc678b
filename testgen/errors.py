"""Exception hierarchy for testgen."""


class TestGenError(Exception):
    """Base exception for testgen failures."""

    __test__ = False


class EmptyInputError(TestGenError, ValueError):
    """Raised when a pipeline run receives no files at all."""

    def __init__(self, message: str = "No files provided for test generation"):
        super().__init__(message)


class ConfigError(TestGenError):
    """Raised when the configuration file cannot be parsed."""


class SourceError(TestGenError):
    """Raised when the source collaborator cannot list or read files."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class ModelError(TestGenError):
    """Raised when the model runner fails to produce a response."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
