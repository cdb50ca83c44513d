"""
Parseopts utilities (internal helpers, carefully exposed)

Overview
- UnsetType / Unset
  • Singleton sentinel meaning “not provided”. Option values, defaults and
    option arguments may legitimately be None, "" or False, so absence needs
    its own marker.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, preserving falsey values.

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated accessors.

- mirror("attr")
  • Read-only property over a private backing field (self._attr). Mutable
    containers are handed out as fresh copies so that callers (and option
    accumulators) never mutate the compiled state.

- pr_join(*parts)
  • Join the present parts with a space and quote the result, the way fault
    messages quote the offending switch and argument.

Usage guidance
- Prefer Unset for defaults when None is a user-meaningful value.
- Names not in __all__ are internal and may change without notice.
"""
import builtins
import copy
import functools
from collections.abc import Mapping, MutableMapping, MutableSequence, MutableSet
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false, but distinct from None, 0, "" and False.
    - repr(Unset) -> "Unset".
    - Singleton per process and sealed against subclassing.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return `object` unless it is the Unset sentinel, in which case return `default`.

    None and every other falsey value are preserved as-is.

    Examples
    - coalesce("--port", "?")  -> "--port"
    - coalesce(Unset, "?")     -> "?"
    - coalesce(None, "?")      -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name) -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _detach(object):
    """
    Return a private copy of mutable containers; everything else is returned as-is.

    Immutable values (tuples, strings, numbers, callables, frozen sets) are
    shared. Mutable lists, dicts and sets are deep-copied so nested
    accumulators are detached too.
    """
    if isinstance(object, MutableSequence | MutableMapping | MutableSet):
        return copy.deepcopy(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private backing attribute "_{name}".

    Mutable containers are detached on every read (see _detach).

    Example
    - Given self._default = [], declare default = mirror("default"); every
      access returns a new empty list.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


def pr_join(*parts):
    """
    Join the present parts with a single space and wrap them in double quotes.

    Unset and None parts are skipped; embedded quotes and backslashes are
    escaped so the quoted text stays unambiguous.

    Examples
    - pr_join("--port", "PORT") -> '"--port PORT"'
    - pr_join("--verbose", Unset) -> '"--verbose"'
    """
    text = " ".join(str(part) for part in parts if part is not Unset and part is not None)
    return '"%s"' % text.replace("\\", "\\\\").replace('"', '\\"')


def freeze(object, /):
    """
    Return a read-only snapshot of a mapping (shallow), leaving other objects untouched.
    """
    if isinstance(object, Mapping):
        return MappingProxyType(dict(object))
    return object


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Notes
- Singleton: there is only one Unset instance.
- Distinct from None: an option whose default is None has a default.
- Falsey: bool(Unset) is False.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pr_join",
    "freeze",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
