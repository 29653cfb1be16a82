r"""
cmdspec definition model.

Overview
- Definitions
  • OptionDefinition: named definition with one or more names (e.g., -p/--port).
  • ArgumentDefinition: positional definition addressed by a 0-based index.
  • Definitions: a validated, read-only set of option and argument definitions.

- Introspection & representation
  • DefinitionType metaclass derives __typename__ from the class name and
    exposes the fields listed in __introspectable__ as read-only properties.
  • Definition provides stable __repr__/__rich_repr__ implementations.

Metadata (sanitized on construction)
- Shared
  • key: str, the property key under which values reach the sink. Defaults to
    the first option name without its lead-in ("--dry-run" → "dry_run"), or to
    the lowered metavar / "argument<index>" for arguments.
  • type: type, the registry tag selecting the value handler.
  • metavar: None | str, display label of the value. Defaults to the type name
    upper-cased ("INT", "DATE"); None for boolean options (presence-only look).
  • required, multivalued: bool.
  • usage: None | str, literal usage text; usagekey: hashable message key.
  • format: None | str, opaque hint handed to the handler (strptime pattern).
  • handler: ValueHandler, resolved through the registry at construction.

Validation highlights
- Option names: "-x" (one lead-in and a non-blank character) or "--name"
  (two lead-ins, no whitespace); "--" alone is reserved.
- Definitions: unique keys, unique option names across all options,
  contiguous argument indices, the multi-valued argument last, no required
  argument after an optional one.

Every violation raises DefinitionError (a ValueError) carrying a FaultCode;
wrongly typed metadata raises TypeError.
"""
import builtins
import logging
import re
from collections.abc import Hashable

from .faults import FaultCode, DefinitionError
from .handlers import HandlerRegistry
from .tokens import LEAD_IN, STOP
from .utils import Unset, coalesce, mirror, typename

logger = logging.getLogger(__name__)


class DefinitionType(type):
    """
    Metaclass of the definition kinds.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens).
    - every name in __introspectable__ becomes a read-only property mirroring
      the private "_<name>" field.
    - __displayable__ (if set) narrows what __rich_repr__ shows.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        return super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )


def validate(name, /):
    """
    Check an option name; raise DefinitionError with the matching FaultCode.

    Rules
    - ""            → EMPTY_NAME
    - "-"           → INVALID_NAME
    - "x"           → WRONG_LEAD_IN (one character other than the lead-in)
    - "--"          → RESERVED_NAME
    - "x-", "- "    → WRONG_LEAD_IN / WHITESPACE_LEAD (two characters)
    - "-long", ...  → WRONG_LEAD_IN unless it starts with "--"
    - "--a b"       → WHITESPACE_NAME
    """
    if not isinstance(name, str):
        raise TypeError("option names must be strings")
    if not name:
        raise DefinitionError(key=FaultCode.EMPTY_NAME)
    if name == LEAD_IN:
        raise DefinitionError(name, key=FaultCode.INVALID_NAME)
    if len(name) == 1:
        raise DefinitionError(LEAD_IN, name, key=FaultCode.WRONG_LEAD_IN)
    if len(name) == 2:
        if name == STOP:
            raise DefinitionError(name, key=FaultCode.RESERVED_NAME)
        if not name.startswith(LEAD_IN):
            raise DefinitionError(LEAD_IN, name, key=FaultCode.WRONG_LEAD_IN)
        if name[1].isspace():
            raise DefinitionError(LEAD_IN, key=FaultCode.WHITESPACE_LEAD)
        return name
    if not name.startswith(STOP):
        raise DefinitionError(STOP, name, key=FaultCode.WRONG_LEAD_IN)
    if any(character.isspace() for character in name):
        raise DefinitionError(name, key=FaultCode.WHITESPACE_NAME)
    return name


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the metadata shared by every definition.

    Mutates metadata in place; 'key' and 'metavar' may still be Unset
    afterwards and are defaulted by the concrete kind.
    """
    for name, accepted in (("key", str | Unset), ("usage", str | Unset | None)):
        if not isinstance(value := metadata[name], accepted):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        if isinstance(value, str) and not (value := value.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = value

    if not isinstance(metadata["type"], builtins.type):
        raise TypeError(f"{cls.__typename__} 'type' must be a type")

    if not isinstance(metavar := metadata["metavar"], str | Unset | None):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    # blank counts as not given
    if isinstance(metavar, str) and not (metavar := metavar.strip()):
        metavar = Unset
    metadata["metavar"] = metavar

    if not isinstance(metadata["usagekey"], Hashable):
        raise TypeError(f"{cls.__typename__} 'usagekey' must be hashable")

    if not isinstance(format := metadata["format"], str | None):
        raise TypeError(f"{cls.__typename__} 'format' must be a string")
    if isinstance(format, str) and not format:
        raise ValueError(f"{cls.__typename__} 'format' cannot be empty")

    if not isinstance(registry := metadata.pop("registry"), HandlerRegistry | Unset):
        raise TypeError(f"{cls.__typename__} 'registry' must be a HandlerRegistry")
    metadata["handler"] = coalesce(registry, HandlerRegistry.builtin()).resolve(
        metadata["type"], metadata["handler"], metadata.pop("converter")
    )

    metadata["required"] = bool(metadata["required"])
    metadata["multivalued"] = bool(metadata["multivalued"])
    metadata["usage"] = coalesce(metadata["usage"])
    metadata["usagekey"] = coalesce(metadata["usagekey"])


class Definition(metaclass=DefinitionType):
    """
    Common base of OptionDefinition and ArgumentDefinition (closed set).
    """

    __introspectable__ = (
        "key",
        "type",
        "metavar",
        "required",
        "multivalued",
        "usage",
        "usagekey",
        "format",
        "handler",
    )

    def __init_subclass__(cls, **options):
        if cls.__name__ not in ("OptionDefinition", "ArgumentDefinition") or cls.__module__ != __name__:
            raise TypeError(f"type {cls.__mro__[1].__name__!r} is not an acceptable base type")
        super().__init_subclass__(**options)

    @property
    def isoption(self):
        return isinstance(self, OptionDefinition)

    @property
    def isargument(self):
        return isinstance(self, ArgumentDefinition)

    @property
    def sortkey(self):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__typename__}({', '.join('%s=%r' % pair for pair in self.__rich_repr__())})"

    def __rich_repr__(self):
        for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
            yield name, getattr(self, name)


class OptionDefinition(Definition):
    """
    Named definition.

    Parameters
    - names: one or more str
      The first is the primary name, the others are aliases (order kept).
    - key: Unset | str
      Sink key; derived from the primary name when Unset.
    - type: type (default str)
      Registry tag selecting the value handler.
    - metavar: Unset | None | str
      Value label for usage text; derived from type when Unset, None for bool.
    - required: bool
      The option must appear on every command line.
    - multivalued: bool
      The option may repeat; the sink collects every value.
    - usage / usagekey: literal usage text / message key resolving it.
    - format: None | str, opaque hint for the handler.
    - handler / converter / registry: handler resolution (see HandlerRegistry.resolve).
    """

    __introspectable__ = ("name", "aliases") + Definition.__introspectable__
    __displayable__ = ("name", "aliases", "key", "type", "metavar", "required", "multivalued")

    def __init__(
            self,
            *names,
            key=Unset,
            type=str,
            metavar=Unset,
            required=False,
            multivalued=False,
            usage=Unset,
            usagekey=Unset,
            format=None,
            handler=Unset,
            converter=Unset,
            registry=Unset
    ):
        if not names:
            raise TypeError(f"{OptionDefinition.__typename__} must specify at least one name")
        seen = set()
        for name in names:
            validate(name)
            if name in seen:
                raise DefinitionError(name, key=FaultCode.DUPLICATE_NAME)
            seen.add(name)

        metadata = {
            "key": key,
            "type": type,
            "metavar": metavar,
            "required": required,
            "multivalued": multivalued,
            "usage": usage,
            "usagekey": usagekey,
            "format": format,
            "handler": handler,
            "converter": converter,
            "registry": registry,
        }
        _sanitize_metadata(OptionDefinition, metadata)

        metadata["name"], *metadata["aliases"] = names
        metadata["key"] = coalesce(metadata["key"], metadata["name"].lstrip(LEAD_IN).replace(LEAD_IN, "_"))
        if metadata["metavar"] is Unset:
            metadata["metavar"] = None if issubclass(type, bool) else typename(type)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def names(self):
        return (self._name, *self._aliases)

    @property
    def sortkey(self):
        return self._name


class ArgumentDefinition(Definition):
    """
    Positional definition.

    Parameters
    - index: int (>= 0)
      Position among the positional tokens; indices of a model are contiguous.
    - key: Unset | str
      Sink key; the lowered metavar when one is given, else "argument<index>".
    - type, metavar, required (default True), multivalued, usage, usagekey,
      format, handler, converter, registry: as for OptionDefinition.

    Only the argument with the highest index may be multi-valued; it then
    takes every remaining positional token.
    """

    __introspectable__ = ("index",) + Definition.__introspectable__
    __displayable__ = ("index", "key", "type", "metavar", "required", "multivalued")

    def __init__(
            self,
            index,
            /,
            key=Unset,
            type=str,
            metavar=Unset,
            required=True,
            multivalued=False,
            usage=Unset,
            usagekey=Unset,
            format=None,
            handler=Unset,
            converter=Unset,
            registry=Unset
    ):
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError(f"{ArgumentDefinition.__typename__} 'index' must be an integer")
        if index < 0:
            raise ValueError(f"{ArgumentDefinition.__typename__} 'index' cannot be negative")

        metadata = {
            "key": key,
            "type": type,
            "metavar": metavar,
            "required": required,
            "multivalued": multivalued,
            "usage": usage,
            "usagekey": usagekey,
            "format": format,
            "handler": handler,
            "converter": converter,
            "registry": registry,
        }
        _sanitize_metadata(ArgumentDefinition, metadata)

        if metadata["metavar"] is None:
            raise TypeError(f"{ArgumentDefinition.__typename__} 'metavar' must be a string")
        explicit = metadata["metavar"]
        metadata["metavar"] = coalesce(explicit, typename(type))
        metadata["key"] = coalesce(
            metadata["key"],
            explicit.lower().replace("-", "_") if explicit else "argument%d" % index
        )
        metadata["index"] = index

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def sortkey(self):
        return self._index


class Definitions:
    """
    Validated, read-only collection of definitions.

    Parameters
    - definitions: OptionDefinition | ArgumentDefinition (any order)

    Exposes
    - options: tuple of option definitions (declaration order).
    - arguments: tuple of argument definitions (by index).
    - switches: read-only mapping of every option name and alias to its definition.

    Raises
    - TypeError for anything that is not a definition.
    - DefinitionError (DUPLICATE_KEY, DUPLICATE_NAME, DUPLICATE_INDEX,
      INDEX_GAP, MISPLACED_MULTIVALUED, REQUIRED_AFTER_OPTIONAL).
    """

    __slots__ = ("_options", "_arguments", "_switches")

    def __init__(self, *definitions):
        options = []
        arguments = []
        switches = {}
        keys = set()

        for definition in definitions:
            if not isinstance(definition, Definition):
                raise TypeError("Definitions() arguments must be option or argument definitions")
            if definition.key in keys:
                raise DefinitionError(definition.key, key=FaultCode.DUPLICATE_KEY, definition=definition)
            keys.add(definition.key)

            if definition.isoption:
                for name in definition.names:
                    if name in switches:
                        raise DefinitionError(name, key=FaultCode.DUPLICATE_NAME, definition=definition)
                    switches[name] = definition
                options.append(definition)
            else:
                arguments.append(definition)

        arguments.sort(key=lambda argument: argument.index)
        indices = [argument.index for argument in arguments]
        for previous, argument in zip(arguments, arguments[1:]):
            if previous.index == argument.index:
                raise DefinitionError(argument.index, key=FaultCode.DUPLICATE_INDEX, definition=argument)
        if missing := sorted(set(range(indices[-1] + 1 if indices else 0)) - set(indices)):
            raise DefinitionError(", ".join(map(str, missing)), key=FaultCode.INDEX_GAP)

        for argument in arguments[:-1]:
            if argument.multivalued:
                raise DefinitionError(argument.metavar, key=FaultCode.MISPLACED_MULTIVALUED, definition=argument)
        for previous, argument in zip(arguments, arguments[1:]):
            if argument.required and not previous.required:
                raise DefinitionError(
                    argument.metavar, previous.metavar,
                    key=FaultCode.REQUIRED_AFTER_OPTIONAL,
                    definition=argument
                )

        self._options = tuple(options)
        self._arguments = tuple(arguments)
        self._switches = switches
        logger.debug("definitions ready: %d option(s), %d argument(s)", len(options), len(arguments))

    options = mirror("options")
    arguments = mirror("arguments")
    switches = mirror("switches")

    def __iter__(self):
        yield from self._options
        yield from self._arguments

    def __len__(self):
        return len(self._options) + len(self._arguments)

    def __repr__(self):
        return "definitions(options=%r, arguments=%r)" % (self._options, self._arguments)


__all__ = (
    "validate",
    "Definition",
    "OptionDefinition",
    "ArgumentDefinition",
    "Definitions",
)
