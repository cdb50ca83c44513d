"""
Default option summary: a plain, left-aligned table of the compiled specs.

      -p, --port PORT    80  Port number
      -v                     Verbosity level
          --[no-]daemon      Detach from the terminal

Columns are switches, default (only shown when some argument-taking spec has a
default or a default_fn; a None default shows as an empty cell) and description.
Each column is as wide as its widest cell; rows are indented and separated by
two spaces, and trailing whitespace is trimmed. Pass another callable as
summary_fn to parse_opts to replace it.
"""
from .utils import Unset, coalesce


def _switches(spec):
    long_opt = spec.long_opt
    if long_opt is not Unset and spec.negatable:
        long_opt = "--[no-]" + long_opt.removeprefix("--")

    if spec.has("short_opt") and long_opt is not Unset:
        text = f"{spec.short_opt}, {long_opt}"
    elif long_opt is not Unset:
        text = f"    {long_opt}"
    else:
        text = coalesce(spec.short_opt, "")

    if spec.takes_argument:
        text += " " + spec.required
    return text


def _default(spec):
    if not spec.takes_argument:
        return ""
    if spec.has("default_desc"):
        return spec.default_desc
    if spec.has("default") and spec.default is not None:
        return str(spec.default)
    return ""


def summary_parts(specs, /):
    """
    Return the table cells, one list of strings per spec.
    """
    show_defaults = any(
        spec.takes_argument and (spec.has("default") or spec.has("default_fn")) for spec in specs
    )
    parts = []
    for spec in specs:
        row = [_switches(spec)]
        if show_defaults:
            row.append(_default(spec))
        row.append(spec.desc if spec.has("desc") else "")
        parts.append(row)
    return parts


def summarize(specs, /):
    """
    Reduce compiled option specs into a summary for printing at a terminal.

    Returns "" when there are no specs.
    """
    if not (parts := summary_parts(specs)):
        return ""
    widths = [max(map(len, column)) for column in zip(*parts)]
    return "\n".join(
        "".join(f"  {cell:<{width}}" for cell, width in zip(row, widths)).rstrip()
        for row in parts
    )


__all__ = (
    "summarize",
    "summary_parts",
)
