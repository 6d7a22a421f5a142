"""
This module contains the exceptions raised by the builddependency framework.
"""


class BuildDependencyException(Exception):
    """
    Base exception for all builddependency errors.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(BuildDependencyException):
    """
    Raised by a server connector when a remote call fails.

    The underlying exception, if any, is kept as ``cause`` so the
    resolution pipeline can report it as detail.
    """

    def __init__(self, message: str, cause: BaseException = None):
        super().__init__(message)
        self.cause = cause

    @property
    def cause_name(self) -> str:
        return type(self.cause if self.cause is not None else self).__name__

    @property
    def detail(self) -> str:
        if self.cause is None:
            return self.message
        return f"{type(self.cause).__name__}: {self.cause}"


class FatalIOError(BuildDependencyException):
    """
    Raised when the descriptor file itself can't be read or written.
    """

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class ConfigurationError(BuildDependencyException):
    """
    Raised when the builddependency configuration is invalid.
    """
