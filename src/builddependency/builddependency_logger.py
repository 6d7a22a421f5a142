"""
Builddependency logger module.

The logger doubles as the diagnostics sink of a load/resolution pass: every
recoverable problem is logged through it and recorded as a Diagnostic that
callers can inspect afterwards.
"""

import inspect
import logging
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class ErrorKind(str, Enum):
    """Error taxonomy for diagnostics."""

    FORMAT = "format"
    REFERENCE = "reference"
    TRANSPORT = "transport"
    FATAL_IO = "fatal_io"


class LogLine(BaseModel):
    """
    Represents a line in the builddependency log
    """

    time: str
    level: str
    caller_file: str
    caller_name: str
    caller_line: int
    message: str


class Diagnostic(BaseModel):
    """
    A recoverable problem reported during parsing or resolution.

    line_number is 1-based and, like line, only set when the problem can be
    tied to a line of the descriptor.
    """

    level: int
    kind: Optional[ErrorKind] = None
    message: str
    line_number: Optional[int] = None
    line: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.level >= logging.ERROR

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}"


class BuildDependencyLogger:
    """
    Logger class
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger("builddependency")
        self.diagnostics: List[Diagnostic] = []

    def log(
        self,
        debug_message: str,
        level: int,
        kind: Optional[ErrorKind] = None,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ) -> None:
        """
        Log the message using the logger and record it as a diagnostic.

        Args:
            debug_message: Human readable message
            level: A logging level (logging.ERROR, logging.DEBUG, ...)
            kind: Error kind, if the message reports a problem
            line_number: Descriptor line the message refers to
            line: Literal content of that line
        """
        if kind is not None or level >= logging.WARNING:
            self.diagnostics.append(
                Diagnostic(
                    level=level,
                    kind=kind,
                    message=debug_message,
                    line_number=line_number,
                    line=line,
                )
            )

        # Collect details about the callee
        curframe = inspect.currentframe()
        calframe = inspect.getouterframes(curframe, 2)
        caller_file = calframe[1][1].split("/")[-1]
        caller_line = calframe[1][2]
        caller_name = calframe[1][3]

        log_line = LogLine(
            time=str(datetime.now()),
            level=logging.getLevelName(level),
            caller_file=caller_file,
            caller_name=caller_name,
            caller_line=caller_line,
            message=debug_message.replace("\n", " "),
        )

        self.logger.log(level=level, msg=log_line.model_dump_json())

    @property
    def errors(self) -> List[Diagnostic]:
        """All recorded diagnostics of level ERROR or above."""
        return [d for d in self.diagnostics if d.is_error]

    def diagnostics_of_kind(self, kind: ErrorKind) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]

    def clear(self) -> None:
        self.diagnostics = []
