"""
Parseopts faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the library
  reports. Codes are grouped by domain so logs and searches stay predictable.
- Fault: a recoverable parse error. It *is* a plain string (the message a user
  reads) and additionally carries its FaultCode.
- ConfigurationError: fatal misconfiguration of the option declarations. It is
  raised by the spec compiler before any argument is looked at and signals a
  programmer bug, never bad user input.
- UnrecognizedSpecKeyWarning: a development-time notice about declaration keys
  the compiler does not understand (they are dropped).
- OptionsExit: the bundle of faults collected by a parse, rendered through rich
  and either printed (shell mode) or raised.
- trigger(): central entry point to surface an OptionsExit or a ConfigurationError.

Propagation policy
- Parse faults are collected into ParseResult.errors and never raised by the
  pipeline; callers decide what to do with them (see parser.finalize).
- Only ConfigurationError uses a hard failure signal.

Presentation hooks (read lazily from the host's __main__ module)
- __prog__: program name shown in headers.
- __styles__: mapping of rich styles overriding the defaults below.
- __codes__: mapping of FaultCode -> label overriding the numeric code.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the library (stable identifiers).

    grouping (by high-level domain)
    - parse faults (2111x), recoverable and collected
      • UNKNOWN_OPTION, MISSING_REQUIRED_ARGUMENT, PARSE_FAILURE,
        VALIDATION_FAILURE, MISSING_OPTION
    - configuration faults (2112x), fatal at compile time
      • MISSING_ID, DUPLICATE_DEFAULT, DUPLICATE_DEFAULT_FN, DUPLICATE_SHORT_OPT,
        DUPLICATE_LONG_OPT, CONFLICTING_MERGE, MALFORMED_DECLARATION
    - warnings (2211x)
      • UNRECOGNIZED_SPEC_KEY
    """
    # --- parse faults (21xxx) ---
    UNKNOWN_OPTION              = 21111
    MISSING_REQUIRED_ARGUMENT   = 21112
    PARSE_FAILURE               = 21113
    VALIDATION_FAILURE          = 21114
    MISSING_OPTION              = 21115

    # --- configuration faults (21xxx) ---
    MISSING_ID                  = 21121
    DUPLICATE_DEFAULT           = 21122
    DUPLICATE_DEFAULT_FN        = 21123
    DUPLICATE_SHORT_OPT         = 21124
    DUPLICATE_LONG_OPT          = 21125
    CONFLICTING_MERGE           = 21126
    MALFORMED_DECLARATION       = 21127

    # --- warnings (22xxx) ---
    UNRECOGNIZED_SPEC_KEY       = 22111

    @property
    def title(self):
        """
        lowercased, human-friendly label derived from the member name.
        """
        return self.name.lower().replace("_", " ")

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels; otherwise the numeric value
        is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class Fault(str):
    """
    A collected parse error: the message string itself, tagged with a FaultCode.

    Faults compare, hash and print exactly like their message, so an errors
    sequence can be treated as a sequence of plain strings.
    """

    def __new__(cls, message, /, code):
        if not isinstance(code, FaultCode):
            raise TypeError("Fault() 'code' must be a fault-code")
        self = super().__new__(cls, message)
        self.code = code
        return self

    def __repr__(self):
        return f"Fault({str.__repr__(self)}, code={self.code.name})"

    def __reduce__(self):
        return type(self), (str(self), self.code)


def _styles(defaults):
    return defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))


def _prog(default="parseopts"):
    return str(getattr(__import__("__main__"), "__prog__", default))


class ConfigurationError(Exception):
    """
    Fatal misconfiguration of the option declarations.

    Attributes
    - message: one-sentence description of the violated rule.
    - code: the FaultCode of the violated rule.
    - subject: the offending value (an id or a switch), or Unset.
    """

    def __init__(self, message, /, code=FaultCode.MALFORMED_DECLARATION, *, subject=Unset):
        super().__init__(message)
        self.message = message
        self.code = code
        self.subject = subject

    def __rich__(self):
        styles = _styles({
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
        })
        header = Text.assemble(
            "[ ",
            Text(_prog(), styles["prog-name"]),
            " — ",
            Text(self.code.normalize(), styles["code"]),
            " | ",
            Text(self.code.title.title(), styles["error-title"]),
            " ]",
        )
        return Group(header, Text(self.message, styles["error-message"]))

    def __trigger__(self, **options):
        if not options.get("shell"):
            raise self from None
        console.print(self)
        sys.exit(options.get("status", 1))


class UnrecognizedSpecKeyWarning(Warning):
    """
    Emitted when an option declaration carries keys the compiler does not know.

    The keys are dropped; the rest of the declaration is compiled normally.
    """

    def __init__(self, message, /, keys=()):
        super().__init__(message)
        self.message = message
        self.keys = tuple(keys)
        self.code = FaultCode.UNRECOGNIZED_SPEC_KEY


class OptionsExit(Exception):
    """
    The faults collected by one parse, bundled for the shell.

    Options
    - shell: print through the stderr console and exit instead of raising.
    - colorful: style the output (defaults can be overridden via __styles__).
    - fancy: wrap the faults in a titled panel.
    - status: exit status used in shell mode.
    - summary: option summary printed under the faults (omitted when empty).
    """

    def __init__(self, faults, /, **options):
        self.faults = tuple(faults)
        self.options = MappingProxyType(options)
        super().__init__(f"{len(self.faults)} option error(s)")

    def __rich__(self):
        styles = _styles({
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
            "code": "bold #00E5FF",
            "error-message": "#C8C8D0",
            "summary": "dim",
        })

        def styler(style):
            return styles[style] if self.options.get("colorful", True) else ""

        header = Text.assemble(
            "[ ",
            Text(_prog(), styler("prog-name")),
            " — ",
            Text("option errors" if len(self.faults) != 1 else "option error", styler("title")),
            " ]",
        )

        lines = []
        for fault in self.faults:
            code = getattr(fault, "code", Unset)
            lines.append(Text.assemble(
                Text(code.normalize() + " " if isinstance(code, FaultCode) else "", styler("code")),
                Text(str(fault), styler("error-message")),
            ))

        if summary := self.options.get("summary"):
            lines.append(Text(""))
            lines.append(Text(summary, styler("summary")))

        if self.options.get("fancy"):
            return Panel(Group(*lines), title=header, title_align="left")
        return Group(header, *lines)

    def __trigger__(self, **options):
        options = {**self.options, **options}
        if not options.get("shell"):
            raise self from None
        console.print(OptionsExit(self.faults, **options))
        sys.exit(options.get("status", 1))


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide a __trigger__ method (ConfigurationError, OptionsExit).
    - in shell mode the fault is rendered via the rich console and the process
      exits; otherwise it is raised.
    """
    if not hasattr(fault, "__trigger__") or not callable(fault.__trigger__):
        raise TypeError("trigger() argument must have a __trigger__ method")
    fault.__trigger__(**options)


__all__ = (
    "FaultCode",
    "Fault",
    "ConfigurationError",
    "UnrecognizedSpecKeyWarning",
    "OptionsExit",
    "trigger",
)
