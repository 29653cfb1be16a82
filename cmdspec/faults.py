"""
cmdspec faults (parse errors, definition errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers. They double as message
  keys, so a host can translate any fault by registering a template under its
  code (see cmdspec.messages).
- CommandLineError: base of the closed set of parse-time failures. Each kind
  carries the offending definition (when there is one), the positional
  message arguments, a literal default template, a short title and a hint,
  and knows how to render itself through rich.
- DefinitionError: construction-time invariant violations of the definition
  model (duplicate names, gaps in the argument indices, unresolvable value
  handlers, ...). These are fatal and never deferred to parse time.
- trigger(): surface a parse error (print-and-exit in shell mode, raise otherwise).

Message resolution
- error.message asks error.resolver (a cmdspec.messages.Messages by default)
  for the text under error.key, handing over the literal template; if the
  lookup or the formatting fails, the literal is used verbatim.
- error.literal is always the untranslated text.

Styling
- Rendering options (prog, colorful, fancy) are merged in by trigger() or set
  by the parser; the palette can be overridden through a __styles__ mapping in
  __main__, the labels of the codes through __codes__.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .messages import Messages
from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers and message keys).

    grouping
    - handler faults (1, 2, 7, 30)
      • INVALID_PARAMETER, UNKNOWN_VALUE, INVALID_FORMAT, INVALID_DATETIME
    - parse faults (3..13)
      • ABORTED, ARGUMENT_MISSING, ILLEGAL_OPERAND, MISSING_OPERAND,
        NO_ARGUMENT_ALLOWED, OPTION_INVALID, OPTION_MISSING, PARSE_FAILED,
        TOO_MANY_ARGUMENTS
    - option name faults (31..36)
      • EMPTY_NAME, INVALID_NAME, RESERVED_NAME, WHITESPACE_LEAD,
        WHITESPACE_NAME, WRONG_LEAD_IN
    - model faults (40..46)
      • DUPLICATE_INDEX, INDEX_GAP, DUPLICATE_NAME, DUPLICATE_KEY,
        MISPLACED_MULTIVALUED, REQUIRED_AFTER_OPTIONAL, UNRESOLVED_HANDLER
    """
    # --- handler faults ---
    INVALID_PARAMETER       = 1
    UNKNOWN_VALUE           = 2
    INVALID_FORMAT          = 7
    INVALID_DATETIME        = 30

    # --- parse faults ---
    ABORTED                 = 3
    ARGUMENT_MISSING        = 4
    ILLEGAL_OPERAND         = 5
    MISSING_OPERAND         = 8
    NO_ARGUMENT_ALLOWED     = 9
    OPTION_INVALID          = 10
    OPTION_MISSING          = 11
    PARSE_FAILED            = 12
    TOO_MANY_ARGUMENTS      = 13

    # --- option name faults ---
    EMPTY_NAME              = 31
    INVALID_NAME            = 32
    RESERVED_NAME           = 33
    WHITESPACE_LEAD         = 34
    WHITESPACE_NAME         = 35
    WRONG_LEAD_IN           = 36

    # --- model faults ---
    DUPLICATE_INDEX         = 40
    INDEX_GAP               = 41
    DUPLICATE_NAME          = 42
    DUPLICATE_KEY           = 43
    MISPLACED_MULTIVALUED   = 44
    REQUIRED_AFTER_OPTIONAL = 45
    UNRESOLVED_HANDLER      = 46

    def normalize(self):
        """
        return a host-normalized label for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels. without a mapping the
        numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


TEMPLATES = MappingProxyType({
    FaultCode.INVALID_PARAMETER: "'{0}' cannot be parsed as a valid command line parameter",
    FaultCode.UNKNOWN_VALUE: "Unknown/invalid value: {0}",
    FaultCode.INVALID_FORMAT: "The date format pattern '{0}' is not valid",
    FaultCode.INVALID_DATETIME: "'{0}' is not a valid date/time",
    FaultCode.ABORTED: "The command line parsing was aborted due to an exception: {0}",
    FaultCode.ARGUMENT_MISSING: "The mandatory argument '{0}' is missing on the command line",
    FaultCode.ILLEGAL_OPERAND: "'{1}' is not a valid value for '{0}'",
    FaultCode.MISSING_OPERAND: "Option '{0}' requires an argument",
    FaultCode.NO_ARGUMENT_ALLOWED: "No arguments allowed: {0}",
    FaultCode.OPTION_INVALID: "The option '{0}' is invalid",
    FaultCode.OPTION_MISSING: "The mandatory option '{0}' is missing on the command line",
    FaultCode.PARSE_FAILED: "Parsing the command line failed",
    FaultCode.TOO_MANY_ARGUMENTS: "Too many arguments provided: {0}",
    FaultCode.EMPTY_NAME: "The empty string is not a valid option name",
    FaultCode.INVALID_NAME: "'{0}' is not a valid option name",
    FaultCode.RESERVED_NAME: "'{0}' is a reserved name",
    FaultCode.WHITESPACE_LEAD: "Character after '{0}' may not be whitespace",
    FaultCode.WHITESPACE_NAME: "An option name may not contain any whitespace characters",
    FaultCode.WRONG_LEAD_IN: "The name '{1}' must start with '{0}'",
    FaultCode.DUPLICATE_INDEX: "Argument index '{0}' is used more than once",
    FaultCode.INDEX_GAP: "Missing index: {0} - Gap in sequence",
    FaultCode.DUPLICATE_NAME: "Option name '{0}' is used more than once",
    FaultCode.DUPLICATE_KEY: "Property key '{0}' is used more than once",
    FaultCode.MISPLACED_MULTIVALUED: "Only the argument with the highest index may be multi-valued, not '{0}'",
    FaultCode.REQUIRED_AFTER_OPTIONAL: "The required argument '{0}' follows the optional argument '{1}'",
    FaultCode.UNRESOLVED_HANDLER: "No value handler is available for type '{0}'",
})


class Fault:
    """
    mixin shared by parse and definition errors: key, template, arguments.

    the literal template is looked up in TEMPLATES by key when not given,
    which keeps the call sites short: OptionMissingError("--port").
    """
    __code__ = FaultCode.PARSE_FAILED

    def __init__(self, *arguments, definition=None, key=Unset, template=Unset):
        self.arguments = arguments
        self.definition = definition
        self.key = coalesce(key, type(self).__code__)
        self.template = coalesce(template, TEMPLATES.get(self.key, str(self.key)))
        self.resolver = Messages()
        super().__init__(self.literal)

    @property
    def literal(self):
        """
        the untranslated message (template formatted with the arguments).
        """
        try:
            return self.template.format(*self.arguments)
        except (IndexError, KeyError, ValueError):
            return self.template

    @property
    def message(self):
        """
        the message as resolved by the attached resolver.
        """
        return self.resolver.resolve(self.key, self.template, *self.arguments)

    def __str__(self):
        return self.message


class CommandLineError(Fault, Exception):
    """
    base of all parse-time failures; recoverable by the caller.

    rendering options
    - prog: program label in the header (default: __main__.__prog__ or "cmdspec").
    - colorful: bool, apply the palette (default True).
    - fancy: bool, wrap the rendering in a panel (default False).
    """
    __title__ = "parse failed"
    __hint__ = "check the command line against the usage text"

    def __init__(self, *arguments, definition=None, key=Unset, template=Unset):
        super().__init__(*arguments, definition=definition, key=key, template=template)
        self.options = MappingProxyType({})

    @property
    def code(self):
        return type(self).__code__

    @property
    def title(self):
        return type(self).__title__

    @property
    def hint(self):
        return type(self).__hint__

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        prog = self.options.get("prog", getattr(main, "__prog__", "cmdspec"))

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(self.code.normalize(), "code"),
            " | ",
            text(self.title.title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        hint = Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint"))

        if self.options.get("fancy", False):
            return Panel(Group(message, hint), title=header, title_align="left")

        return Group(header, message, hint)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self
        console.print(self)
        sys.exit(2)


class AbortedError(CommandLineError):
    __code__ = FaultCode.ABORTED
    __title__ = "parsing aborted"
    __hint__ = "this is most likely a defect in a value handler or in the value sink"


class ArgumentMissingError(CommandLineError):
    __code__ = FaultCode.ARGUMENT_MISSING
    __title__ = "missing argument"
    __hint__ = "add the missing argument after the options"


class IllegalOperandError(CommandLineError):
    __code__ = FaultCode.ILLEGAL_OPERAND
    __title__ = "illegal value"
    __hint__ = "check the value format against the usage text"


class MissingOperandError(CommandLineError):
    __code__ = FaultCode.MISSING_OPERAND
    __title__ = "missing option value"
    __hint__ = "provide a value after the option (e.g., --name value or --name=value)"


class NoArgumentAllowedError(CommandLineError):
    __code__ = FaultCode.NO_ARGUMENT_ALLOWED
    __title__ = "unexpected argument"
    __hint__ = "this command does not take positional arguments"


class OptionInvalidError(CommandLineError):
    __code__ = FaultCode.OPTION_INVALID
    __title__ = "unknown option"

    def __init__(self, *arguments, definition=None, key=Unset, template=Unset, suggestions=()):
        super().__init__(*arguments, definition=definition, key=key, template=template)
        self.suggestions = tuple(suggestions)

    @property
    def hint(self):
        if self.suggestions:
            return "did you mean %r? use '--' to pass option-like values as arguments" % self.suggestions[0]
        return "check the spelling; use '--' to pass option-like values as arguments"


class OptionMissingError(CommandLineError):
    __code__ = FaultCode.OPTION_MISSING
    __title__ = "missing option"
    __hint__ = "add the mandatory option to the command line"


class ParseFailedError(CommandLineError):
    __code__ = FaultCode.PARSE_FAILED
    __title__ = "parse failed"


class TooManyArgumentsError(CommandLineError):
    __code__ = FaultCode.TOO_MANY_ARGUMENTS
    __title__ = "too many arguments"
    __hint__ = "remove the extra arguments or quote values that contain blanks"


class DefinitionError(Fault, ValueError):
    """
    construction-time violation of the definition model invariants (fatal).
    """
    __code__ = FaultCode.PARSE_FAILED


def trigger(fault, /, **options):
    """
    surface a parse error with the given rendering options.

    contract
    - fault must provide __trigger__ (see CommandLineError).
    - options are merged into fault.options before triggering.
    - in shell mode the fault is printed to stderr and the process exits with
      status 2; otherwise the fault is raised.
    """
    if not hasattr(fault, "__trigger__") or not callable(fault.__trigger__):
        raise TypeError("trigger() argument must have a __trigger__ method")
    fault.options = MappingProxyType({**fault.options, **options})
    fault.__trigger__()


__all__ = (
    "FaultCode",
    "TEMPLATES",
    "CommandLineError",
    "AbortedError",
    "ArgumentMissingError",
    "IllegalOperandError",
    "MissingOperandError",
    "NoArgumentAllowedError",
    "OptionInvalidError",
    "OptionMissingError",
    "ParseFailedError",
    "TooManyArgumentsError",
    "DefinitionError",
    "trigger",
)
