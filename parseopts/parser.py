"""
Parseopts facade: compile, tokenize, resolve and summarize in one call.

What this module provides
- parse_opts(args, declarations, ...): parse an argument vector per the GNU
  Program Argument Syntax Conventions and return a ParseResult.
- get_default_options(declarations): the option map an empty argument vector
  would produce.
- finalize(result, ...): the shell policy. Does nothing on success; otherwise
  prints the collected faults (and the summary) through rich and exits, or
  raises OptionsExit outside of shell mode.

Quick start
    from parseopts import finalize, option, parse_opts

    result = parse_opts(sys.argv[1:], [
        ("-p", "--port PORT", "Port number", {"default": 80, "parse_fn": int,
                                               "validate": [lambda x: 0 < x < 0x10000,
                                                            "Must be a number between 0 and 65536"]}),
        option("-v", None, "Verbosity level", id="verbosity", default=0,
               update_fn=lambda n: n + 1),
        ("-h", "--help"),
    ])
    finalize(result)

Options
- in_order: stop option processing at the first positional argument. Useful for
  programs with subcommands that have their own option specs.
- no_defaults: only include the options given in the arguments. Useful for
  layering options from several sources (config file, then command line).
- strict: an option argument that matches another switch is treated as missing.
- summary_fn: callable receiving the compiled specs and returning the summary
  string (defaults to summarize).
"""
from collections import namedtuple

from .faults import OptionsExit, trigger
from .resolver import resolve
from .specs import compile_option_specs, required_switches
from .summary import summarize
from .tokens import tokenize

ParseResult = namedtuple("ParseResult", ("options", "arguments", "summary", "errors"))
ParseResult.__doc__ = """
Outcome of parse_opts.

- options: dict of option id -> value.
- arguments: list of positional arguments, in order.
- summary: option summary string.
- errors: tuple of error message strings (Fault instances); empty on success.
"""


def parse_opts(args, declarations, /, *, in_order=False, no_defaults=False, strict=False, summary_fn=None):
    """
    Parse `args` according to the option `declarations`.

    Raises
    - ConfigurationError: when the declarations are inconsistent (before any
      argument is looked at). User errors are never raised; they are returned
      in ParseResult.errors.
    """
    if summary_fn is not None and not callable(summary_fn):
        raise TypeError("parse_opts() 'summary_fn' must be callable")

    specs = compile_option_specs(declarations)
    tokens, arguments = tokenize(required_switches(specs), args, in_order=in_order)
    options, errors = resolve(specs, tokens, no_defaults=no_defaults, strict=strict)

    return ParseResult(
        options=options,
        arguments=arguments,
        summary=(summary_fn or summarize)(specs),
        errors=tuple(errors),
    )


def get_default_options(declarations, /):
    """
    Return the option map produced when no arguments are given.

    Static defaults are included, then default_fn values computed from them.
    """
    options, _ = resolve(compile_option_specs(declarations), ())
    return options


def finalize(result, /, *, shell=True, colorful=True, fancy=False, status=1, summary=True):
    """
    Surface the errors of a ParseResult.

    - No errors: returns the result unchanged.
    - shell=True: prints the errors (and the summary unless summary=False) to
      stderr and exits with `status`.
    - shell=False: raises OptionsExit carrying the errors.
    """
    if not result.errors:
        return result
    trigger(
        OptionsExit(result.errors, summary=result.summary if summary else ""),
        shell=shell,
        colorful=colorful,
        fancy=fancy,
        status=status,
    )
    return result


__all__ = (
    "ParseResult",
    "parse_opts",
    "get_default_options",
    "finalize",
)
