"""
cmdspec matching engine.

Scope
- ArgumentParser walks a normalized token sequence once, left to right, and
  routes every token to its definition:
  • option-shaped tokens (while option parsing is active) are looked up by
    name or alias; their handler consumes the operand(s) that follow,
  • every other token is the next positional argument; a multi-valued last
    argument takes all remaining positional tokens,
  • '--' ends option parsing for good; it is consumed and never delivered.
- After the walk, mandatory options (by name) and then mandatory arguments
  (by index) are checked; the first absentee is reported.

Per-call state
- ParseState holds what one call needs (current definition, seen definitions,
  parsing flag, next argument position). The parser itself keeps nothing
  between calls, so one instance may serve many parses; sinks may not be shared.

Failure
- Every failure is a CommandLineError raised at the first problem. Values
  delivered before the failure stay in the sink (the parse is not atomic).
- An unexpected exception from a handler or from the sink is wrapped into
  AbortedError with the original as its cause.

Shell mode
- invoke() behaves like parse(); with shell=True a failure prints the usage
  and the rendered fault to stderr and exits with status 2.
"""
import difflib
import logging
import os
import sys
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .definitions import Definitions
from .faults import (
    AbortedError,
    ArgumentMissingError,
    CommandLineError,
    NoArgumentAllowedError,
    OptionInvalidError,
    OptionMissingError,
    TooManyArgumentsError,
    console,
    trigger
)
from .messages import Messages
from .tokens import STOP, TokenCursor, expand, normalize
from .usage import UsageBuilder
from .utils import Unset, coalesce

logger = logging.getLogger(__name__)


class ParseState:
    """
    Mutable state of a single parse call.

    - current: the definition whose value is being processed (None at first).
    - seen: definitions matched at least once.
    - parsing: True while option-shaped tokens are options.
    - position: index of the next positional argument definition.
    """

    __slots__ = ("current", "seen", "parsing", "position")

    def __init__(self, *, parsing=True):
        self.current = None
        self.seen = set()
        self.parsing = bool(parsing)
        self.position = 0

    def __repr__(self):
        return "parse-state(parsing=%r, position=%d, seen=%d)" % (self.parsing, self.position, len(self.seen))


class Namespace(Mapping):
    """
    Default value sink: a read-only mapping filled through put(key, value).

    Keys of multi-valued definitions collect their values in a list, every
    other key keeps the last value put. Values are also reachable as
    attributes (namespace.port).
    """

    __slots__ = ("_multivalued", "_values")

    def __init__(self, definitions=(), /):
        self._multivalued = frozenset(definition.key for definition in definitions if definition.multivalued)
        self._values = {}

    def put(self, key, value, /):
        if key in self._multivalued:
            self._values.setdefault(key, []).append(value)
        else:
            self._values[key] = value

    def __getitem__(self, key):
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError("namespace has no value for %r" % name) from None

    def __repr__(self):
        return "namespace(%s)" % ", ".join("%s=%r" % item for item in self._values.items())


class ArgumentParser:
    """
    Command line parser over a validated set of definitions.

    Parameters
    - definitions: Definitions | Iterable[Definition]
      Plain iterables are validated through Definitions(...).
    - messages: resolver with resolve(key, fallback, *arguments) (default Messages()).
    - command: Unset | str
      Program label for usage text and fault headers; defaults to
      __main__.__prog__ or the basename of sys.argv[0].
    - shell: bool, print-and-exit on failures in invoke().
    - colorful, fancy: bool, rendering options of the faults.
    """

    __slots__ = ("_definitions", "_messages", "_command", "_shell", "_colorful", "_fancy")

    def __init__(self, definitions, /, *, messages=Unset, command=Unset, shell=False, colorful=True, fancy=False):
        if not isinstance(definitions, Definitions):
            if not isinstance(definitions, Iterable):
                raise TypeError("ArgumentParser() argument must be Definitions or an iterable of definitions")
            definitions = Definitions(*definitions)
        messages = coalesce(messages, Messages())
        if not callable(getattr(messages, "resolve", None)):
            raise TypeError("ArgumentParser() 'messages' must provide a resolve() method")
        if not isinstance(command, str | Unset):
            raise TypeError("ArgumentParser() 'command' must be a string")

        self._definitions = definitions
        self._messages = messages
        self._command = command
        self._shell = bool(shell)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)

    @property
    def definitions(self):
        return self._definitions

    @property
    def messages(self):
        return self._messages

    @property
    def command(self):
        return coalesce(self._command, getattr(__import__("__main__"), "__prog__", os.path.basename(sys.argv[0])))

    @property
    def shell(self):
        return self._shell

    @property
    def colorful(self):
        return self._colorful

    @property
    def fancy(self):
        return self._fancy

    def _prepare(self, tokens, environment):
        if isinstance(tokens, str) or not isinstance(tokens, Iterable):
            raise TypeError("tokens must be an iterable of strings")
        tokens = list(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("tokens must be an iterable of strings")
        return normalize(expand(tokens, environment), options=bool(self._definitions.options))

    def resolve(self, tokens, /, *, environment=Unset):
        """
        Return the effective command line: argument files expanded, combined
        options split, tokens containing blanks quoted.
        """
        return " ".join(
            '"%s"' % token if any(character.isspace() for character in token) else token
            for token in self._prepare(tokens, environment)
        )

    def usage(self, command=Unset, /):
        """
        Return the usage text for command (default: self.command).
        """
        return UsageBuilder(self._messages).build(coalesce(command, self.command), self._definitions)

    def parse(self, tokens, sink=Unset, /, *, environment=Unset):
        """
        Parse tokens and deliver every value to sink.put(key, value).

        parameters
        - tokens: Iterable[str], the raw command line (without the program name).
        - sink: object with put(key, value); a fresh Namespace when Unset.
        - environment: Mapping for ${NAME} substitution in argument files.

        returns
        - the sink.

        raises
        - CommandLineError (one of its kinds) on the first failure.
        """
        if sink is Unset:
            sink = Namespace(self._definitions)
        if not callable(getattr(sink, "put", None)):
            raise TypeError("parse() sink must provide a put() method")

        state = ParseState(parsing=bool(self._definitions.options))
        cursor = TokenCursor(self._prepare(tokens, environment), state)
        logger.debug("parsing %d token(s)", len(cursor))

        try:
            self._walk(cursor, sink)
            self._check(state)
        except CommandLineError as fault:
            fault.resolver = self._messages
            fault.options = MappingProxyType({
                "prog": self.command,
                "colorful": self._colorful,
                "fancy": self._fancy,
            } | dict(fault.options))
            raise
        return sink

    def invoke(self, tokens=Unset, sink=Unset, /, *, environment=Unset):
        """
        Parse tokens (default: sys.argv[1:]) for a program entry point.

        Outside shell mode this is parse(). In shell mode a failure writes the
        usage text and the rendered fault to stderr and exits with status 2.
        """
        try:
            return self.parse(coalesce(tokens, sys.argv[1:]), sink, environment=environment)
        except CommandLineError as fault:
            if not self._shell:
                raise
            console.print(self.usage(), markup=False, highlight=False)
            trigger(fault, shell=True)

    def _walk(self, cursor, sink):
        state = cursor.state
        switches = self._definitions.switches
        arguments = self._definitions.arguments

        while cursor:
            token = cursor.current
            if cursor.isoption(token):
                if token == STOP:
                    logger.debug("'%s' ends option parsing", STOP)
                    state.parsing = False
                    cursor.advance()
                    continue
                try:
                    definition = switches[token]
                except KeyError:
                    suggestions = difflib.get_close_matches(token, switches.keys(), 5)
                    raise OptionInvalidError(token, suggestions=suggestions) from None
                # the handler reads its operand(s) after the option name
                cursor.advance()
            else:
                if not arguments:
                    raise NoArgumentAllowedError(token)
                if state.position >= len(arguments):
                    raise TooManyArgumentsError(token)
                definition = arguments[state.position]
                if not definition.multivalued:
                    state.position += 1

            state.current = definition
            state.seen.add(definition)
            self._deliver(cursor, sink, definition)

    def _deliver(self, cursor, sink, definition):
        try:
            value, consumed = definition.handler.convert(cursor, definition)
            logger.debug("%s ← %r (%d token(s))", definition.key, value, consumed)
            cursor.advance(consumed)
            sink.put(definition.key, value)
        except CommandLineError:
            raise
        except Exception as exception:
            raise AbortedError(exception, definition=definition) from exception

    def _check(self, state):
        for option in sorted(self._definitions.options, key=lambda option: option.sortkey):
            if option.required and option not in state.seen:
                raise OptionMissingError(option.name, definition=option)
        for argument in self._definitions.arguments:
            if argument.required and argument not in state.seen:
                raise ArgumentMissingError(argument.metavar, definition=argument)

    def __repr__(self):
        return "argument-parser(command=%r, definitions=%r)" % (self._command, self._definitions)


__all__ = (
    "ParseState",
    "Namespace",
    "ArgumentParser",
)
