"""Error handling for bcc language. Scanning, parsing and evaluation only ever raise BccErrors: if another type of
error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Every BccError is an error record {kind, span, message, help}. The core never renders them itself; ErrorHandler turns
them into colored reports against the source text they came from.
"""

import sys
from dataclasses import dataclass

from termcolor import colored


@dataclass(frozen=True)
class Span:
    """Half-open [start, end) byte offsets into source text."""
    start: int
    end: int

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"span starts at {self.start}, after its end {self.end}")

    @classmethod
    def single(cls, pos):
        """Returns span covering exactly one position."""
        return cls(pos, pos + 1)

    def to(self, other):
        """Returns span from the start of self to the end of other."""
        return Span(self.start, other.end)


class BccError(Exception):
    """Templates an error so that it can be reported against its source. span is None for errors that don't originate
    in source text (unreadable files, interrupts, internal issues).
    """
    kind = "Error"
    color = "red"

    def __init__(self, message, span=None, help=None, internal=False):
        super().__init__(message)
        self.message = message
        self.span = span
        self.help = help
        self.internal = internal

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r}, span={self.span!r})"


class LexError(BccError):
    """Malformed source text: unterminated string, invalid number, unrecognized character."""
    kind = "Lexical Error"
    color = "red"


class ParseError(BccError):
    """Token sequence that doesn't match any grammar production."""
    kind = "Parse Error"
    color = "yellow"


class RuntimeFault(BccError):
    """Well-formed program that performs an invalid operation while being evaluated."""
    kind = "Runtime Error"
    color = "magenta"


class ErrorHandler:
    """Context manager that will silently suppress Python errors and report bcc errors/warnings."""
    ERROR = "red"
    WARNING = "blue"
    HELP = "cyan"

    def __init__(self, fatal=True):
        self.fatal = fatal
        self.traceback = {}

    def register_file(self, path):
        """Registers path in traceback."""
        self.traceback[path] = (None, None)

    def register_source(self, path, source, line_num=1):
        """Registers source (whole file or single command-line entry) under path, starting at line_num. Should be
        called prior to scanning/running source.
        """
        self.traceback[path] = (source, line_num)

    def remove_source(self, path):
        """Removes source from traceback given path. Should be called after source ran successfully."""
        self.traceback[path] = (None, None)

    @staticmethod
    def locate(source, offset):
        """Returns (line index, column, line) of byte offset in source. Columns count characters, not bytes."""
        prefix = source.encode("utf-8", errors="surrogatepass")[:offset].decode("utf-8", errors="ignore")
        line_idx = prefix.count("\n")
        col = len(prefix) - (prefix.rfind("\n") + 1)

        lines = source.split("\n")
        line = lines[line_idx] if line_idx < len(lines) else ""
        return line_idx, col, line

    @staticmethod
    def diagnose(error, source):
        """Returns offending line of source with error.span highlighted and underlined. Spans that run past the end of
        their first line are clipped to it.
        """
        line_idx, start, line = ErrorHandler.locate(source, error.span.start)
        end_idx, end, __ = ErrorHandler.locate(source, error.span.end)
        if end_idx != line_idx:
            end = len(line)
        end = max(end, start + 1)

        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:end], error.color, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += colored("^" + "~" * (end - start - 1), error.color, attrs=["bold"])

        return diagnosis

    def _origin(self):
        """Returns (path, (source, line_num)) most recently registered."""
        return next(reversed(list(self.traceback.items())), (None, (None, None)))

    def warn(self, msg):
        """Prints non-fatal warning message."""
        path, __ = self._origin()

        warning = colored(f"{path}: ", attrs=["bold"]) if path else ""
        warning += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + msg

        print(warning, file=sys.stderr)

    def report(self, error):
        """Returns full report of error as a string, using the most recently registered source for the diagnosis."""
        path, (source, line_num) = self._origin()
        diagnosable = source is not None and error.span is not None and not error.internal

        report = ""
        if diagnosable:
            line_idx, col, __ = ErrorHandler.locate(source, error.span.start)
            report += colored(f"{path}:{line_num + line_idx}:{col + 1}: ", attrs=["bold"])
        elif path:
            report += colored(f"{path}: ", attrs=["bold"])

        if error.internal:
            report += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        report += colored(f"{error.kind}: ", error.color, attrs=["bold"]) + error.message

        if diagnosable:
            report += "\n" + ErrorHandler.diagnose(error, source)
        if error.help:
            report += "\n" + colored("help: ", ErrorHandler.HELP, attrs=["bold"]) + error.help

        return report

    def throw(self, error):
        """Reports error against the most recently registered source. Exits if fatal."""
        print(self.report(error), file=sys.stderr)

        if self.fatal:
            sys.exit(1)
        self.traceback = {path: (None, None) for path in self.traceback}  # no need if error is fatal

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(BccError("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(BccError("maximum recursion depth exceeded"))
        elif exc_type is not None and issubclass(exc_type, BccError):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(BccError(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True))
            do_exit = True

        return not do_exit
