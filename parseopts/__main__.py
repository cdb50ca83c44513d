"""
Demonstration entry point: python -m parseopts [OPTIONS] [ARGS...]

Parses its own arguments against a small server-like option set and pretty
prints the outcome. Errors are reported through finalize() (exit status 1);
-h/--help prints the summary and exits with status 0.
"""
import sys

from rich.console import Console
from rich.pretty import pprint

from .parser import finalize, parse_opts
from .specs import option

DECLARATIONS = (
    ("-p", "--port PORT", "Port number", {
        "default": 80,
        "parse_fn": int,
        "validate": [lambda x: 0 < x < 0x10000, "Must be a number between 0 and 65536"],
    }),
    ("-H", "--hostname HOST", "Remote host", {
        "default_fn": lambda options: "localhost" if options.get("port", 80) != 80 else "example.com",
        "default_desc": "example.com",
    }),
    option("-f", "--file NAME", "File names to read", multi=True, default=[],
           update_fn=lambda files, name: [*files, name]),
    option("-v", None, "Verbosity level; may be specified multiple times", id="verbosity",
           default=0, update_fn=lambda n: n + 1),
    ("-d", "--[no-]daemon", "Detach and run in the background", {"default": True}),
    ("-h", "--help"),
)


def main(argv=None, /):
    """
    Run the demonstration CLI and return the process exit status.
    """
    result = parse_opts(sys.argv[1:] if argv is None else argv, DECLARATIONS)
    console = Console()

    if result.options.get("help"):
        console.print("Usage: parseopts [options] [args...]\n", markup=False)
        console.print(result.summary, markup=False, highlight=False)
        return 0

    finalize(result)
    pprint({"options": result.options, "arguments": result.arguments}, console=console, expand_all=True)
    return 0


if __name__ == '__main__':
    sys.exit(main())
