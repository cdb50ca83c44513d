"""
Parseopts tokenizer: split an argument vector into option tokens and positionals.

Rules (GNU Program Argument Syntax Conventions)
- "--" ends option scanning; every argument after it is positional.
- "--name=value" always yields LongOpt("--name", "value"), even when the value
  is empty and whether or not the option takes an argument.
- "--name" consumes the next argument when "--name" takes an argument.
- "-abc" is a cluster of short options. Peeling stops at the first one taking an
  argument: the rest of the cluster, or else the next argument, is its value.
- A bare "-" is positional.
- Anything else is positional. With in_order, it also ends option scanning
  (useful for subcommands that own the remaining arguments); otherwise scanning
  continues, so options may follow positionals.

Tokens are named tuples (switch, optarg); optarg is Unset when the argument
vector did not provide one.

Example
    >>> tokenize({"-p"}, ["-vp80", "file", "--name=x"])
    ([ShortOpt(switch='-v', optarg=Unset), ShortOpt(switch='-p', optarg='80'),
      LongOpt(switch='--name', optarg='x')], ['file'])
"""
import re
from collections import namedtuple

from .utils import Unset

_ShortOpt = namedtuple("ShortOpt", ("switch", "optarg"), defaults=(Unset,))
_LongOpt = namedtuple("LongOpt", ("switch", "optarg"), defaults=(Unset,))


class ShortOpt(_ShortOpt):
    """A single-character switch ("-p"), possibly peeled from a cluster."""
    __slots__ = ()
    kind = "short"


class LongOpt(_LongOpt):
    """A long switch ("--port"), with its "=" or next-argument value when present."""
    __slots__ = ()
    kind = "long"


_END_OF_OPTIONS = re.compile(r"--")
_ASSIGNED_LONG_OPT = re.compile(r"--\S+=")
_LONG_OPT = re.compile(r"--")
_SHORT_OPT = re.compile(r"-.")


def _peel(required, cluster, rest):
    """
    Expand a short option cluster ("-abc") into ShortOpt tokens.

    Returns the tokens and the arguments left after any value consumed from `rest`.
    """
    tokens = []
    for index, char in enumerate(cluster[1:], start=2):
        switch = "-" + char
        if switch not in required:
            tokens.append(ShortOpt(switch))
            continue
        if remainder := cluster[index:]:
            # Value glued to the switch: "-p80".
            tokens.append(ShortOpt(switch, remainder))
        elif rest:
            tokens.append(ShortOpt(switch, rest[0]))
            rest = rest[1:]
        else:
            tokens.append(ShortOpt(switch))
        break
    return tokens, rest


def tokenize(required, args, /, *, in_order=False):
    """
    Split `args` into option tokens and positional arguments.

    Parameters
    - required: Set[str]
      Switches ("-p", "--port") that take an argument.
    - args: Iterable[str]
      The raw argument vector (without the program name).
    - in_order: bool
      Stop option scanning at the first positional argument.

    Returns
    - (tokens, positionals): a list of ShortOpt/LongOpt in source order and a
      list of positional arguments in source order.
    """
    tokens = []
    positionals = []
    args = list(args)

    while args:
        argument, args = args[0], args[1:]

        if not isinstance(argument, str):
            raise TypeError(f"tokenize() arguments must be strings, not {type(argument).__name__}")

        if _END_OF_OPTIONS.fullmatch(argument):
            positionals.extend(args)
            break

        if _ASSIGNED_LONG_OPT.match(argument):
            switch, optarg = argument.split("=", 1)
            tokens.append(LongOpt(switch, optarg))
        elif _LONG_OPT.match(argument):
            if argument in required and args:
                tokens.append(LongOpt(argument, args[0]))
                args = args[1:]
            else:
                tokens.append(LongOpt(argument))
        elif _SHORT_OPT.match(argument):
            cluster, args = _peel(required, argument, args)
            tokens.extend(cluster)
        elif in_order:
            positionals.append(argument)
            positionals.extend(args)
            break
        else:
            positionals.append(argument)

    return tokens, positionals


__all__ = (
    "ShortOpt",
    "LongOpt",
    "tokenize",
)
