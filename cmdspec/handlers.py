"""
cmdspec value handlers and their registry.

A value handler turns the token(s) under a cursor into one typed value:

    handler.convert(cursor, definition) -> (value, consumed)

'consumed' is the number of tokens taken, counted from the cursor position
(for options the cursor already stands behind the option name, for arguments
it stands on the argument token itself). Handlers read their operands through
cursor.operand(offset), which raises MissingOperandError when the next token is
missing or is another option.

Failure mapping
- ValueError / TypeError / ArithmeticError raised while translating a token
  become IllegalOperandError ("'abc' is not a valid value for '--port'").
- CommandLineError subclasses raised by a handler propagate unchanged.
- Anything else propagates and is wrapped into AbortedError by the parser.

Registry
- HandlerRegistry maps a target type to a factory: factory(type) -> handler.
- resolve(type, handler, converter) picks, in order: the explicit handler,
  the entry of the type itself or of its nearest base class, a generic
  SimpleValueHandler around the converter; otherwise DefinitionError.
- HandlerRegistry() comes pre-populated with the built-ins below and can be
  extended; HandlerRegistry.builtin() is the shared, sealed default.

Built-ins
- str, bool, int, float, Decimal, Path, UUID
- Byte, Short, Integer, Long: range-checked integer tags
- Enum (and IntEnum, StrEnum, Flag, IntFlag): case-insensitive member names
- date, datetime, time: ISO-8601 or the definition's strptime 'format'; "now"
- YesNo: affirmative words (localized) → True, anything else → False
- Character: exactly one character
- codecs.CodecInfo: an encoding name or alias, looked up with codecs.lookup
"""
import builtins
import codecs
import datetime
import decimal
import enum
import functools
import locale
import logging
import uuid
from pathlib import Path

from .faults import FaultCode, IllegalOperandError, DefinitionError
from .tokens import Attached
from .utils import Unset, typename

logger = logging.getLogger(__name__)


def _subject(definition):
    """
    Name used to refer to a definition in messages: option name or metavar.
    """
    return getattr(definition, "name", None) or definition.metavar


class ValueHandler:
    """
    Base value handler: consumes exactly one operand and translates it.

    Subclasses either implement translate(token, definition) or override
    convert(cursor, definition) when they consume a different number of
    tokens.
    """

    __slots__ = ()

    def convert(self, cursor, definition, /):
        token = cursor.operand(0)
        return self._translate(token, definition), 1

    def _translate(self, token, definition):
        try:
            return self.translate(token, definition)
        except (ValueError, TypeError, ArithmeticError) as exception:
            raise IllegalOperandError(_subject(definition), token, definition=definition) from exception

    def translate(self, token, definition, /):
        raise NotImplementedError

    def __repr__(self):
        return "%s()" % type(self).__name__


class SimpleValueHandler(ValueHandler):
    """
    Generic handler backed by a string converter: converter(token) -> value.
    """

    __slots__ = ("_converter",)

    def __init__(self, converter, /):
        if not callable(converter):
            raise TypeError("SimpleValueHandler() argument must be callable")
        self._converter = converter

    @property
    def converter(self):
        return self._converter

    def translate(self, token, definition, /):
        return self._converter(token)

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, getattr(self._converter, "__name__", self._converter))


class StringValueHandler(ValueHandler):
    __slots__ = ()

    def translate(self, token, definition, /):
        return str(token)


class BooleanValueHandler(ValueHandler):
    """
    Boolean handler with an optional operand.

    For options the next token is taken only when it is an inline value
    ('--flag=false') or reads 'true'/'false' (any case); otherwise nothing is
    consumed and the value is True, so '--verbose' alone switches it on.
    For arguments the operand is mandatory.
    """

    __slots__ = ()

    LITERALS = {"true": True, "false": False}

    def convert(self, cursor, definition, /):
        if definition.isargument:
            return super().convert(cursor, definition)
        token = cursor.peek(0)
        if token is not None and (
                isinstance(token, Attached) or
                (not cursor.isoption(token) and token.casefold() in self.LITERALS)
        ):
            return self._translate(token, definition), 1
        return True, 0

    def translate(self, token, definition, /):
        try:
            return self.LITERALS[token.casefold()]
        except KeyError:
            raise ValueError("not a boolean: %r" % token) from None


class YesNoValueHandler(ValueHandler):
    """
    Lenient boolean: an affirmative word yields True, anything else False.

    The affirmatives are the language-neutral set plus the words of the
    current locale's language.
    """

    __slots__ = ()

    AFFIRMATIVES = {
        None: frozenset({"ok", "true", "yes"}),
        "af": frozenset({"ja"}),
        "bg": frozenset({"da", "да"}),
        "cs": frozenset({"ano"}),
        "da": frozenset({"ja"}),
        "de": frozenset({"ja"}),
        "el": frozenset({"ne", "ναι"}),
        "es": frozenset({"sí"}),
        "et": frozenset({"jah"}),
        "fi": frozenset({"kyllä"}),
        "fr": frozenset({"oui"}),
        "hr": frozenset({"da", "да"}),
        "hu": frozenset({"igen"}),
        "id": frozenset({"ya"}),
        "is": frozenset({"já"}),
        "it": frozenset({"sì"}),
        "ja": frozenset({"hai", "はい", "ee", "ええ", "un", "うん"}),
        "ko": frozenset({"ne", "네"}),
        "lt": frozenset({"taip"}),
        "no": frozenset({"ja"}),
        "pl": frozenset({"tak"}),
        "pt": frozenset({"sim"}),
        "ro": frozenset({"da"}),
        "ru": frozenset({"da", "да"}),
        "sl": frozenset({"da"}),
        "sr": frozenset({"da", "да"}),
        "sv": frozenset({"ja"}),
        "tr": frozenset({"evet"}),
        "uk": frozenset({"tak", "так"}),
    }

    @staticmethod
    def language():
        try:
            name = locale.getlocale()[0] or ""
        except ValueError:
            return None
        return name.split("_")[0].lower() or None

    def translate(self, token, definition, /):
        words = self.AFFIRMATIVES[None] | self.AFFIRMATIVES.get(self.language(), frozenset())
        return token.strip().casefold() in words


class CharacterValueHandler(ValueHandler):
    """
    Exactly one character; the token is taken as is (no stripping).
    """

    __slots__ = ()

    def translate(self, token, definition, /):
        if len(token) != 1:
            raise ValueError("not a single character: %r" % token)
        return token


class CharsetValueHandler(ValueHandler):
    """
    Character encodings by name or alias, as known to the codecs registry.

    The value is the codecs.CodecInfo of the encoding ("utf8" and "UTF-8"
    both yield the utf-8 codec).
    """

    __slots__ = ()

    def translate(self, token, definition, /):
        try:
            return codecs.lookup(token.strip())
        except LookupError:
            raise ValueError("unknown encoding: %r" % token) from None


class IntegerValueHandler(ValueHandler):
    """
    Decimal integers, optionally bounded (inclusive).
    """

    __slots__ = ("_minimum", "_maximum")

    def __init__(self, minimum=None, maximum=None, /):
        self._minimum = minimum
        self._maximum = maximum

    def translate(self, token, definition, /):
        value = int(token)
        if self._minimum is not None and value < self._minimum:
            raise ValueError("%d is below %d" % (value, self._minimum))
        if self._maximum is not None and value > self._maximum:
            raise ValueError("%d is above %d" % (value, self._maximum))
        return value

    def __repr__(self):
        return "%s(%r, %r)" % (type(self).__name__, self._minimum, self._maximum)


class EnumValueHandler(ValueHandler):
    """
    Enumeration members by name, case-insensitive (aliases included).
    """

    __slots__ = ("_enum", "_members")

    def __init__(self, enum, /):
        self._enum = enum
        self._members = {name.casefold(): member for name, member in enum.__members__.items()}

    def translate(self, token, definition, /):
        try:
            return self._members[token.strip().casefold()]
        except KeyError:
            raise IllegalOperandError(token, key=FaultCode.UNKNOWN_VALUE, definition=definition) from None

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, self._enum.__name__)


class TemporalValueHandler(ValueHandler):
    """
    Dates, date-times and times.

    - "now" (any case) yields the current value.
    - Without a format on the definition the token is read as ISO-8601.
    - With a format, the token is read with datetime.strptime(token, format).
    """

    __slots__ = ()

    def now(self):
        raise NotImplementedError

    def fromisoformat(self, token):
        raise NotImplementedError

    def narrow(self, value):
        raise NotImplementedError

    def translate(self, token, definition, /):
        if token.strip().casefold() == "now":
            return self.now()
        pattern = definition.format
        try:
            if pattern is None:
                return self.fromisoformat(token.strip())
            return self.narrow(datetime.datetime.strptime(token.strip(), pattern))
        except ValueError as exception:
            if pattern is not None and ("bad directive" in str(exception) or "stray %" in str(exception)):
                raise IllegalOperandError(pattern, key=FaultCode.INVALID_FORMAT, definition=definition) from exception
            raise IllegalOperandError(token, key=FaultCode.INVALID_DATETIME, definition=definition) from exception


class DateValueHandler(TemporalValueHandler):
    __slots__ = ()

    def now(self):
        return datetime.date.today()

    def fromisoformat(self, token):
        return datetime.date.fromisoformat(token)

    def narrow(self, value):
        return value.date()


class DateTimeValueHandler(TemporalValueHandler):
    __slots__ = ()

    def now(self):
        return datetime.datetime.now()

    def fromisoformat(self, token):
        return datetime.datetime.fromisoformat(token)

    def narrow(self, value):
        return value


class TimeValueHandler(TemporalValueHandler):
    __slots__ = ()

    def now(self):
        return datetime.datetime.now().time()

    def fromisoformat(self, token):
        return datetime.time.fromisoformat(token)

    def narrow(self, value):
        return value.time()


class Byte(int):
    """Registry tag: 8-bit signed integer."""
    __slots__ = ()


class Short(int):
    """Registry tag: 16-bit signed integer."""
    __slots__ = ()


class Integer(int):
    """Registry tag: 32-bit signed integer."""
    __slots__ = ()


class Long(int):
    """Registry tag: 64-bit signed integer."""
    __slots__ = ()


class Character(str):
    """Registry tag: a single character (see CharacterValueHandler)."""
    __slots__ = ()


class YesNo(int):
    """Registry tag: lenient yes/no boolean (see YesNoValueHandler)."""
    __slots__ = ()


def _bounded(bits):
    return lambda type: IntegerValueHandler(-(1 << (bits - 1)), (1 << (bits - 1)) - 1)


BUILTINS = (
    (str, lambda type: StringValueHandler()),
    (bool, lambda type: BooleanValueHandler()),
    (Character, lambda type: CharacterValueHandler()),
    (YesNo, lambda type: YesNoValueHandler()),
    (int, lambda type: IntegerValueHandler()),
    (Byte, _bounded(8)),
    (Short, _bounded(16)),
    (Integer, _bounded(32)),
    (Long, _bounded(64)),
    (float, SimpleValueHandler),
    (decimal.Decimal, SimpleValueHandler),
    (Path, SimpleValueHandler),
    (uuid.UUID, SimpleValueHandler),
    (codecs.CodecInfo, lambda type: CharsetValueHandler()),
    (enum.Enum, EnumValueHandler),
    (enum.IntEnum, EnumValueHandler),
    (enum.StrEnum, EnumValueHandler),
    (enum.Flag, EnumValueHandler),
    (enum.IntFlag, EnumValueHandler),
    (datetime.date, lambda type: DateValueHandler()),
    (datetime.datetime, lambda type: DateTimeValueHandler()),
    (datetime.time, lambda type: TimeValueHandler()),
)


class HandlerRegistry:
    """
    Explicit type → handler-factory registry.

    Parameters
    - builtins: bool (keyword-only, default True)
      pre-populate with the built-in handlers.

    Notes
    - Built once, before any parse, and read-only afterwards by convention;
      the shared default returned by builtin() is sealed and refuses register().
    """

    __slots__ = ("_factories", "_sealed")

    def __init__(self, *, builtins=True):
        self._factories = {}
        self._sealed = False
        if builtins:
            for type, factory in BUILTINS:
                self.register(type, factory)

    @classmethod
    @functools.cache
    def builtin(cls):
        """
        The shared, sealed registry holding only the built-ins.
        """
        registry = cls()
        registry._sealed = True
        return registry

    @property
    def sealed(self):
        return self._sealed

    def register(self, type, factory, /):
        """
        Register factory(type) -> ValueHandler for type (and its subclasses).
        """
        if self._sealed:
            raise TypeError("the built-in handler registry is sealed; create a HandlerRegistry() to extend it")
        if not isinstance(type, builtins.type):
            raise TypeError("register() first argument must be a type")
        if not callable(factory):
            raise TypeError("register() second argument must be callable")
        self._factories[type] = factory
        logger.debug("handler factory for %s registered", type.__qualname__)

    def __contains__(self, type):
        return any(klass in self._factories for klass in getattr(type, "__mro__", (type,)))

    def resolve(self, type, /, handler=Unset, converter=Unset):
        """
        Return the value handler for type.

        order
        - handler: an explicit ValueHandler wins.
        - the factory registered for type or its nearest base class.
        - SimpleValueHandler(converter) when a converter is given.

        raises
        - DefinitionError (UNRESOLVED_HANDLER) naming the type otherwise.
        """
        if handler is not Unset:
            if not isinstance(handler, ValueHandler):
                raise TypeError("explicit handler must be a ValueHandler")
            return handler

        for klass in getattr(type, "__mro__", (type,)):
            if klass in self._factories:
                return self._factories[klass](type)

        if converter is not Unset:
            if not callable(converter):
                raise TypeError("converter must be callable")
            return SimpleValueHandler(converter)

        raise DefinitionError(typename(type), key=FaultCode.UNRESOLVED_HANDLER)

    def __repr__(self):
        return "handler-registry(types=%d, sealed=%r)" % (len(self._factories), self._sealed)


__all__ = (
    "ValueHandler",
    "SimpleValueHandler",
    "StringValueHandler",
    "BooleanValueHandler",
    "YesNoValueHandler",
    "CharacterValueHandler",
    "CharsetValueHandler",
    "IntegerValueHandler",
    "EnumValueHandler",
    "TemporalValueHandler",
    "DateValueHandler",
    "DateTimeValueHandler",
    "TimeValueHandler",
    "Byte",
    "Short",
    "Integer",
    "Long",
    "Character",
    "YesNo",
    "HandlerRegistry",
)
