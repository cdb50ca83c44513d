"""
Parseopts resolution engine: merge option tokens into an option map.

For every token, in order:
1. Match the token against the compiled specs (short tokens against short_opt,
   long tokens against long_opt and, for negatable specs, the "--no-" form).
2. Extract the raw value: the option argument for argument-taking specs,
   True/False for flags. A missing argument (or, in strict mode, an argument
   that is itself a known switch) is an error.
3. Parse it with parse_fn.
4. Validate the parsed value (unless the spec validates after merging).
5. Merge it into the map: plain set, assoc_fn, or update_fn (with or without
   the new value, depending on multi).
6. Validate the merged value when post_validation is set; a failure restores
   the map as it was before this token.
7. Mark the id as touched.

Then report missing options, compute default_fn values for untouched ids and,
with no_defaults, drop everything that was not touched.

Every failure becomes a Fault appended to the error list; one bad token never
stops the remaining ones from being processed.
"""
from .faults import Fault, FaultCode
from .utils import Unset, freeze, pr_join


def _unknown_option(switch):
    return Fault(f"Unknown option: {pr_join(switch)}", FaultCode.UNKNOWN_OPTION)


def _missing_required(switch, required):
    return Fault(f"Missing required argument for {pr_join(switch, required)}", FaultCode.MISSING_REQUIRED_ARGUMENT)


def _parse_failure(switch, raw, error):
    return Fault(f"Error while parsing option {pr_join(switch, raw)}: {error}", FaultCode.PARSE_FAILURE)


def _validation_failure(switch, raw, message):
    detail = f": {message}" if message is not None else ""
    return Fault(f"Failed to validate {pr_join(switch, raw)}{detail}", FaultCode.VALIDATION_FAILURE)


def _missing_option(message):
    return Fault(message, FaultCode.MISSING_OPTION)


def _validate(spec, value, switch, raw):
    """
    Run the spec's validators in order; return the Fault of the first failure, or None.

    A predicate fails when it returns a falsy value or raises an Exception.
    A callable message is called with the offending value.
    """
    for predicate, message in spec.validators:
        try:
            valid = predicate(value)
        except Exception:
            valid = False
        if not valid:
            if callable(message):
                message = message(value)
            return _validation_failure(switch, raw, message)
    return None


def _merge(spec, options, value):
    """
    Return the option map after merging `value` for spec.id.

    `options` is never mutated; assoc_fn receives a private copy.
    """
    id = spec.id
    if spec.has("assoc_fn"):
        return dict(spec.assoc_fn(dict(options), id, value))
    merged = dict(options)
    if spec.has("update_fn"):
        if spec.multi:
            merged[id] = spec.update_fn(options.get(id), value)
        else:
            merged[id] = spec.update_fn(options.get(id))
    else:
        merged[id] = value
    return merged


class _Index:
    """
    Switch lookup tables for one set of compiled specs.
    """

    def __init__(self, specs):
        self.short = {}
        self.long = {}
        for spec in specs:
            if spec.has("short_opt"):
                self.short.setdefault(spec.short_opt, spec)
            for switch in (spec.long_opt, spec.negated_opt):
                if switch is not Unset:
                    self.long.setdefault(switch, spec)

    def find(self, token):
        return (self.short if token.kind == "short" else self.long).get(token.switch)

    def __contains__(self, switch):
        return switch in self.short or switch in self.long


def default_option_map(specs, /):
    """
    Return {id: default} for every spec carrying a static default.
    """
    return {spec.id: spec.default for spec in specs if spec.has("default")}


def resolve(specs, tokens, /, *, no_defaults=False, strict=False):
    """
    Reduce option tokens into an option map merged over the declared defaults.

    Parameters
    - specs: Sequence[OptionSpec]
      Compiled specs (see compile_option_specs).
    - tokens: Iterable[ShortOpt | LongOpt]
      Tokenizer output.
    - no_defaults: bool
      Only keep the ids set from the tokens.
    - strict: bool
      Treat an option argument that equals a known switch as missing.

    Returns
    - (options, errors): a dict of id -> value and a list of Fault strings
      (empty on success).
    """
    index = _Index(specs)
    options = default_option_map(specs)
    touched = set()
    errors = []

    for token in tokens:
        switch, optarg = token.switch, token.optarg

        if (spec := index.find(token)) is None:
            errors.append(_unknown_option(switch))
            continue

        if spec.takes_argument:
            if optarg is Unset or (strict and optarg in index):
                errors.append(_missing_required(switch, spec.required))
                continue
            raw = value = optarg
        else:
            # Flags: an "=value" given to a flag is ignored.
            raw = Unset
            value = switch != spec.negated_opt

        if spec.has("parse_fn"):
            try:
                value = spec.parse_fn(value)
            except Exception as error:
                errors.append(_parse_failure(switch, raw, error))
                continue

        if not spec.post_validation and (fault := _validate(spec, value, switch, raw)):
            errors.append(fault)
            continue

        merged = _merge(spec, options, value)

        if spec.post_validation and (fault := _validate(spec, merged.get(spec.id), switch, raw)):
            # The merge is discarded; options still holds the pre-token map.
            errors.append(fault)
            continue

        options = merged
        touched.add(spec.id)

    reported = {}
    for spec in specs:
        if spec.has("missing") and spec.id not in options:
            reported[spec.id] = spec.missing
    errors.extend(map(_missing_option, reported.values()))

    snapshot = freeze(options)
    for spec in specs:
        if spec.has("default_fn") and spec.id not in touched:
            options[spec.id] = spec.default_fn(snapshot)

    if no_defaults:
        options = {id: value for id, value in options.items() if id in touched}

    return options, errors


__all__ = (
    "resolve",
    "default_option_map",
)
