r"""
Parseopts option specifications and the spec compiler.

Overview
- OptionSpec: the compiled, immutable description of one option entry.
  Resolution code only ever sees OptionSpec instances, never raw declarations.
- option(...): convenience builder for the tuple declaration form.
- compile_option_specs(declarations): normalize heterogeneous declarations into
  OptionSpec instances and enforce the global invariants.
- required_switches(specs): the switches that consume an argument (tokenizer input).

Declaration forms
- Tuple form: (short_opt, long_opt, desc, {properties}, ...)
  • Up to three leading str-or-None items map to short_opt, long_opt and desc;
    None skips a slot ("no short option").
  • long_opt may embed the argument description after a space or "=":
    "--port PORT" and "--port=PORT" both mean long_opt="--port", required="PORT".
  • long_opt may carry a negation marker: "--[no-]daemon" accepts both
    "--daemon" (True) and "--no-daemon" (False).
  • Trailing mappings hold named properties; they take precedence over the
    positional derivation, later mappings over earlier ones.
  • id defaults to the long option name without dashes or negation marker.
- Record form: a mapping of properties, transferred verbatim (no id derivation).
- Unrecognized property keys are dropped with an UnrecognizedSpecKeyWarning.
- Already compiled OptionSpec instances pass through unchanged.

Properties
- id, short_opt, long_opt, required, desc, default, default_desc, default_fn,
  parse_fn, assoc_fn, update_fn, multi, post_validation, missing
- validate: flat [predicate, message, predicate, message, ...] shorthand.
- validate_fn / validate_msg: parallel sequences (a single item is accepted).
- validators: sequence of (predicate, message) pairs.
  All three validation forms are concatenated in that order: validators,
  validate_fn/validate_msg, validate.

Invariants (checked after every declaration is compiled)
- every spec has an id;
- at most one spec per id carries a default, and at most one a default_fn;
- short_opt and long_opt values (negated forms included) are unique;
- no spec sets both assoc_fn and update_fn.
Any violation raises a single ConfigurationError.

Quick example:
    >>> specs = compile_option_specs([
    ...     ("-p", "--port PORT", "Port number", {"default": 80, "parse_fn": int}),
    ...     option("-v", None, "Verbosity", id="verbosity", default=0,
    ...            update_fn=lambda n: n + 1),
    ...     ("-d", "--[no-]daemon", "Detach from the terminal"),
    ... ])
    >>> sorted(required_switches(specs))
    ['--port', '-p']
"""
import functools
import itertools
import operator
import re
import warnings
from collections import Counter
from collections.abc import Hashable, Iterable, Mapping, Sequence

from .faults import ConfigurationError, FaultCode, UnrecognizedSpecKeyWarning
from .utils import *

_SHORT_OPT = re.compile(r"-[^-\s]")
_LONG_OPT = re.compile(r"(--(?:\[no-\])?[^\s=]+)(?:[ =](.*))?", re.DOTALL)
_BARE_LONG_OPT = re.compile(r"--(?:\[no-\])?[^\s=]+")
_NEGATION = "[no-]"

_SPEC_KEYS = (
    "id",
    "short_opt",
    "long_opt",
    "required",
    "desc",
    "default",
    "default_desc",
    "default_fn",
    "parse_fn",
    "assoc_fn",
    "update_fn",
    "multi",
    "post_validation",
    "missing",
    "validators",
    "validate_fn",
    "validate_msg",
    "validate",
)


class SpecType(type):
    """
    Metaclass that exposes compiled spec fields as read-only properties.

    Responsibilities
    - Publish every name listed in __introspectable__ through mirror(), backed
      by the private "_{name}" attribute set at construction.
    - Provide stable __repr__/__rich_repr__ implementations that only show the
      fields a declaration actually provided.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens).
    """
    __introspectable__ = ()
    __quiet__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation of the provided fields.

            Example
            - option-spec(id='port', short_opt='-p', long_opt='--port', required='PORT')
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers, skipping unset fields.
            """
            for name in type(self).__introspectable__:
                if (object := getattr(self, "_" + name)) is Unset:
                    continue
                # Switch-like fields are noise when off.
                if name in type(self).__quiet__ and not object:
                    continue
                yield name, object
        self.__rich_repr__ = __rich_repr__

        return self


def _malformed(message, /, subject=Unset):
    return ConfigurationError(message, FaultCode.MALFORMED_DECLARATION, subject=subject)


def _sanitize_switches(cls, metadata, /):
    """
    Internal: validate short_opt/long_opt and resolve the negation marker.

    - short_opt: Unset or a single-character switch ("-p").
    - long_opt: Unset or a bare long switch ("--port", "--[no-]daemon"). The
      negation marker is stripped from the stored long_opt and recorded in
      'negatable'. A negatable option cannot take an argument.

    Mutates metadata in place.
    """
    if (short_opt := metadata["short_opt"]) is not Unset:
        if not isinstance(short_opt, str):
            raise _malformed(f"{cls.__typename__} 'short_opt' must be a string", short_opt)
        if not _SHORT_OPT.fullmatch(short_opt):
            raise _malformed(f"{cls.__typename__} 'short_opt' {short_opt!r} must look like '-x'", short_opt)

    metadata["negatable"] = False
    if (long_opt := metadata["long_opt"]) is not Unset:
        if not isinstance(long_opt, str):
            raise _malformed(f"{cls.__typename__} 'long_opt' must be a string", long_opt)
        if not _BARE_LONG_OPT.fullmatch(long_opt):
            raise _malformed(f"{cls.__typename__} 'long_opt' {long_opt!r} must look like '--name'", long_opt)
        if long_opt.startswith("--" + _NEGATION):
            metadata["long_opt"] = "--" + long_opt.removeprefix("--" + _NEGATION)
            metadata["negatable"] = True

    if metadata["negatable"] and metadata["required"] is not Unset:
        raise _malformed(f"{cls.__typename__} negatable option {long_opt!r} cannot require an argument", long_opt)


def _sanitize_fields(cls, metadata, /):
    """
    Internal: type-check the scalar and callable fields.

    - id: Unset (reported later, globally) or a hashable, non-None value.
    - required/desc/default_desc/missing: Unset or string.
    - default_fn/parse_fn/assoc_fn/update_fn: Unset or callable.
    - multi/post_validation: coerced to bool.
    """
    if (id := metadata["id"]) is not Unset and (id is None or not isinstance(id, Hashable)):
        raise _malformed(f"{cls.__typename__} 'id' must be a hashable value", id)

    for name in ("required", "desc", "default_desc", "missing"):
        if (object := metadata[name]) is not Unset and not isinstance(object, str):
            raise _malformed(f"{cls.__typename__} {name!r} must be a string", object)

    for name in ("default_fn", "parse_fn", "assoc_fn", "update_fn"):
        if (object := metadata[name]) is not Unset and not callable(object):
            raise _malformed(f"{cls.__typename__} {name!r} must be callable", object)

    metadata["multi"] = bool(metadata["multi"])
    metadata["post_validation"] = bool(metadata["post_validation"])


def _sanitize_validators(cls, metadata, /):
    """
    Internal: normalize validators into a tuple of (predicate, message) pairs.

    A message is None (no detail), a string, or a callable receiving the
    offending value.
    """
    validators = []
    for pair in coalesce(metadata["validators"], ()):
        if not isinstance(pair, Sequence) or isinstance(pair, str) or len(pair) != 2:
            raise _malformed(f"{cls.__typename__} 'validators' entries must be (predicate, message) pairs", pair)
        predicate, message = pair
        if not callable(predicate):
            raise _malformed(f"{cls.__typename__} validation predicates must be callable", predicate)
        if message is not None and not isinstance(message, str) and not callable(message):
            raise _malformed(f"{cls.__typename__} validation messages must be strings or callables", message)
        validators.append((predicate, message))
    metadata["validators"] = tuple(validators)


class OptionSpec(metaclass=SpecType):
    """
    Compiled, immutable description of one option entry.

    Several entries may share an id to offer alternate switches (or parse
    transforms) for the same logical option.

    Fields (read-only; absent fields are Unset)
    - id: key of the option in the resulting option map.
    - short_opt / long_opt: "-p" / "--port". long_opt is the positive form
      for negatable options.
    - negatable: "--no-" + name is accepted too, and yields False.
    - required: description of the argument ("PORT"); absent for flags.
    - desc: short description for the summary.
    - default / default_desc: static default and its display form.
    - default_fn: callable(options) computing a default for untouched ids.
    - parse_fn: callable(raw) -> value; flags receive True/False.
    - assoc_fn: callable(options, id, value) -> new options mapping.
    - update_fn: callable(old) -> new, or callable(old, value) -> new with multi.
    - multi: see update_fn.
    - post_validation: validate the merged value instead of the parsed one.
    - validators: tuple of (predicate, message) pairs, tried in order.
    - missing: error message reported when the id ends up without a value.

    Mutable defaults are handed out as fresh copies on every read.
    """

    __introspectable__ = (
        "id",
        "short_opt",
        "long_opt",
        "negatable",
        "required",
        "desc",
        "default",
        "default_desc",
        "default_fn",
        "parse_fn",
        "assoc_fn",
        "update_fn",
        "multi",
        "post_validation",
        "validators",
        "missing",
    )
    __quiet__ = ("negatable", "multi", "post_validation", "validators")

    def __new__(
            cls,
            *,
            id=Unset,
            short_opt=Unset,
            long_opt=Unset,
            required=Unset,
            desc=Unset,
            default=Unset,
            default_desc=Unset,
            default_fn=Unset,
            parse_fn=Unset,
            assoc_fn=Unset,
            update_fn=Unset,
            multi=False,
            post_validation=False,
            validators=Unset,
            missing=Unset,
    ):
        """
        Construct an OptionSpec from already-normalized fields.

        Use compile_option_specs() for declarations; this constructor does not
        split "--port PORT" nor derive the id, and only checks field types.

        Raises
        - ConfigurationError: when a field has the wrong type or shape.
        """
        metadata = {
            "id": id,
            "short_opt": short_opt,
            "long_opt": long_opt,
            "required": required,
            "desc": desc,
            "default": default,
            "default_desc": default_desc,
            "default_fn": default_fn,
            "parse_fn": parse_fn,
            "assoc_fn": assoc_fn,
            "update_fn": update_fn,
            "multi": multi,
            "post_validation": post_validation,
            "validators": validators,
            "missing": missing,
        }
        _sanitize_switches(cls, metadata)
        _sanitize_fields(cls, metadata)
        _sanitize_validators(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def has(self, name, /):
        """
        Return whether the field `name` was provided (is not Unset).
        """
        if name not in type(self).__introspectable__:
            raise AttributeError(f"{type(self).__typename__} has no field {name!r}")
        return getattr(self, "_" + name) is not Unset

    @property
    def takes_argument(self):
        """
        True when the option consumes an argument (required is set).
        """
        return self._required is not Unset

    @property
    def negated_opt(self):
        """
        The "--no-" form of a negatable long option, or Unset.
        """
        if self._negatable:
            return "--no-" + self._long_opt.removeprefix("--")
        return Unset

    @property
    def switches(self):
        """
        Every switch this entry answers to, short first.
        """
        return tuple(
            switch for switch in (self._short_opt, self._long_opt, self.negated_opt) if switch is not Unset
        )

    def matches(self, token, /):
        """
        Return whether a ShortOpt/LongOpt token refers to this entry.
        """
        if token.kind == "short":
            return token.switch == self._short_opt
        return token.switch in (self._long_opt, self.negated_opt)

    def __option_spec__(self):
        return self


def _split_long_opt(long_opt, /):
    """
    Split "--port PORT" / "--port=PORT" into ("--port", "PORT"); "--port" -> ("--port", Unset).
    """
    if not isinstance(long_opt, str) or not (match := _LONG_OPT.fullmatch(long_opt)):
        raise _malformed(f"option spec 'long_opt' {long_opt!r} must look like '--name' or '--name ARG'", long_opt)
    name, required = match.groups()
    return name, required if required is not None else Unset


def _derive_id(long_opt, /):
    """
    "--[no-]daemon" -> "daemon", "--port" -> "port", Unset -> Unset.
    """
    if long_opt is Unset:
        return Unset
    return long_opt.removeprefix("--").removeprefix(_NEGATION)


def _sequence(value, /):
    """
    Wrap a single item (callable or string) into a list; copy other iterables.
    """
    if value is Unset:
        return []
    if isinstance(value, str) or callable(value) or not isinstance(value, Iterable):
        return [value]
    return list(value)


def _select_spec_keys(properties, /):
    """
    Keep the recognized keys and warn about the others.
    """
    if unknown := [key for key in properties if key not in _SPEC_KEYS]:
        warnings.warn(
            UnrecognizedSpecKeyWarning(
                "The following option spec keys are unrecognized: " + ", ".join(map(str, unknown)),
                unknown,
            ),
            stacklevel=5,
        )
    return {key: value for key, value in properties.items() if key in _SPEC_KEYS}


def _desugar_validators(properties, /):
    """
    Merge validators, validate_fn/validate_msg and validate into one list of pairs.
    """
    validators = [tuple(pair) if isinstance(pair, Sequence) and not isinstance(pair, str) else pair
                  for pair in _sequence(properties.pop("validators", Unset))]

    predicates = _sequence(properties.pop("validate_fn", Unset))
    messages = _sequence(properties.pop("validate_msg", Unset))
    validators.extend(zip(predicates, messages + [None] * (len(predicates) - len(messages))))

    shorthand = _sequence(properties.pop("validate", Unset))
    validators.extend(itertools.zip_longest(shorthand[::2], shorthand[1::2]))

    return validators


def _compile_sequence(declaration, /):
    """
    Compile the tuple form (short_opt, long_opt, desc, {properties}, ...).
    """
    leading = list(itertools.takewhile(lambda x: x is None or isinstance(x, str), declaration))
    if len(leading) > 3:
        raise _malformed(
            f"option spec {declaration!r} has more than three leading strings "
            "(short_opt, long_opt, desc)", declaration
        )

    properties = {}
    for item in declaration[len(leading):]:
        if not isinstance(item, Mapping):
            raise _malformed(f"option spec {declaration!r} properties must be mappings, not {item!r}", declaration)
        properties |= item
    properties = _select_spec_keys(properties)

    short_opt, long_opt, desc = ([Unset if x is None else x for x in leading] + [Unset] * 3)[:3]

    required = Unset
    if (long_opt := properties.pop("long_opt", long_opt)) is not Unset and long_opt is not None:
        long_opt, required = _split_long_opt(long_opt)
    else:
        long_opt = Unset

    fields = {
        "id": _derive_id(long_opt),
        "short_opt": short_opt,
        "long_opt": long_opt,
        "required": required,
        "desc": desc,
    }
    fields["validators"] = _desugar_validators(properties)
    fields |= properties
    return OptionSpec(**fields)


def _compile_mapping(declaration, /):
    """
    Compile the record form: recognized keys are transferred verbatim.
    """
    properties = _select_spec_keys(dict(declaration))
    validators = _desugar_validators(properties)
    return OptionSpec(validators=validators, **properties)


def _compile_spec(declaration, /):
    if hasattr(declaration, "__option_spec__") and callable(declaration.__option_spec__):
        if not isinstance(spec := declaration.__option_spec__(), OptionSpec):
            raise TypeError("__option_spec__() non-option-spec returned")
        return spec
    if isinstance(declaration, Mapping):
        return _compile_mapping(declaration)
    if isinstance(declaration, Sequence) and not isinstance(declaration, str):
        return _compile_sequence(declaration)
    raise _malformed(f"option spec must be a sequence or a mapping, not {type(declaration).__name__}", declaration)


def _check_distinct(values, code, label, /):
    """
    Raise ConfigurationError for the first value appearing more than once.
    """
    for value, count in Counter(values).items():
        if count > 1:
            raise ConfigurationError(f"option specs share the {label} {value!r}", code, subject=value)


def compile_option_specs(declarations, /):
    """
    Map option declarations to a tuple of OptionSpec, enforcing the global invariants.

    Parameters
    - declarations: Iterable of tuple-form declarations, record-form mappings
      or OptionSpec instances (see module documentation).

    Returns
    - tuple[OptionSpec, ...] in declaration order.

    Raises
    - ConfigurationError: on a malformed declaration, a missing id, a duplicated
      default/default_fn source, duplicated switches, or an entry setting both
      assoc_fn and update_fn.
    """
    if isinstance(declarations, str | Mapping) or not isinstance(declarations, Iterable):
        raise TypeError("compile_option_specs() argument must be an iterable of option declarations")

    specs = tuple(map(_compile_spec, declarations))

    for spec in specs:
        if not spec.has("id"):
            raise ConfigurationError(
                f"option spec {spec!r} has no id; give it a long option or an explicit id",
                FaultCode.MISSING_ID,
                subject=spec,
            )

    _check_distinct([spec.id for spec in specs if spec.has("default")], FaultCode.DUPLICATE_DEFAULT, "default for id")
    _check_distinct([spec.id for spec in specs if spec.has("default_fn")], FaultCode.DUPLICATE_DEFAULT_FN, "default_fn for id")
    _check_distinct([spec.short_opt for spec in specs if spec.has("short_opt")], FaultCode.DUPLICATE_SHORT_OPT, "short option")
    _check_distinct(
        [switch for spec in specs for switch in (spec.long_opt, spec.negated_opt) if switch is not Unset],
        FaultCode.DUPLICATE_LONG_OPT,
        "long option",
    )

    for spec in specs:
        if spec.has("assoc_fn") and spec.has("update_fn"):
            raise ConfigurationError(
                f"option spec for id {spec.id!r} cannot set both assoc_fn and update_fn",
                FaultCode.CONFLICTING_MERGE,
                subject=spec.id,
            )

    return specs


def option(*positional, **properties):
    """
    Build a tuple-form declaration: option("-p", "--port PORT", "Port", default=80).

    Positional arguments are short_opt, long_opt and desc (None skips a slot);
    keyword arguments are named properties.
    """
    if len(positional) > 3:
        raise TypeError("option() takes at most 3 positional arguments (short_opt, long_opt, desc)")
    return (*positional, properties)


def required_switches(specs, /):
    """
    Return the set of switches whose option consumes an argument.
    """
    return {
        switch
        for spec in specs if spec.takes_argument
        for switch in (spec.short_opt, spec.long_opt) if switch is not Unset
    }


__all__ = (
    # Classes
    "OptionSpec",

    # Functions
    "compile_option_specs",
    "option",
    "required_switches",
)

del SpecType
