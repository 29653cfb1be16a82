"""
cmdspec utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the definition model, the handlers and the
  parser. Nothing here knows about command lines as such.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating it with None.
  • Falsey, printable as "Unset", non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, preserving legitimate falsey values.

- mirror("attr")
  • Read-only property exposing a private backing field (self._attr); containers
    come back frozen (tuple / MappingProxyType / frozenset).

- substitute(text, environment)
  • Replace ${NAME} placeholders from a mapping, leaving unknown names untouched.

- typename(type)
  • Display label for a target type ("INT", "DATE", "PATH", ...).
"""
import functools
import re
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false, but distinct from None, 0 and "".
    - repr(Unset) -> "Unset".
    - Singleton per process; subclassing is forbidden.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
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

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def _freeze(object):
    """
    Shallow freeze of the common container types.
    """
    if isinstance(object, Sequence) and not isinstance(object, (str, bytes, bytearray)):
        return tuple(object)
    if isinstance(object, Mapping):
        return MappingProxyType(object)
    if isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Define a read-only property over the private backing attribute "_{name}".

    Containers are returned frozen so the public surface cannot be used to
    mutate construction-time state.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    def getter(self):
        return _freeze(getattr(self, "_" + name))

    getter.__name__ = getter.__qualname__ = name
    return property(getter)


_PLACEHOLDER = re.compile(r"\$\{(?P<name>[^}]+)}")


def substitute(text, environment, /):
    """
    Replace every ${NAME} in text with environment[NAME].

    Names missing from the environment are left as they are, so a line that
    mentions an undefined variable survives unchanged.
    """
    if not isinstance(text, str):
        raise TypeError("substitute() first argument must be a string")

    def replace(match):
        try:
            return str(environment[match["name"]])
        except KeyError:
            return match[0]

    return _PLACEHOLDER.sub(replace, text)


def typename(type, /):
    """
    Return the metavar label derived from a target type.

    Examples
    - typename(int)           -> "INT"
    - typename(datetime.date) -> "DATE"
    - typename(MyColor)       -> "MY-COLOR"
    """
    name = getattr(type, "__name__", None) or str(type)
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "-", name).upper()


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a meaningful value; materialize it with
coalesce(value, default).
"""


__all__ = (
    "coalesce",
    "mirror",
    "substitute",
    "typename",
    "UnsetType",
    "Unset",
)
