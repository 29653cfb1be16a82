"""
cmdspec usage text.

UsageBuilder renders the usage message of a command from its definitions.
The result is plain text, one string, built without side effects:

    Usage: tool [--date DATE] --port INT [--verbose] FILE [MORE]

    Options:
    --date DATE: the reference date
    -d DATE
    --port INT : the port to listen on
    --verbose  : chatty output

    Arguments:
    FILE: the input file
    MORE: further input files

Layout
- options are sorted by name, arguments by index; optional items of the
  synopsis are bracketed; synopsis items are never split and continue on the
  next line under the first item when the width is exceeded.
- the left column holds "name metavar" for every name and alias of an option,
  or the metavar of an argument; it is as wide as its widest entry plus two,
  and the first line of every entry ends in ": ".
- the right column holds the usage text (resolved by usage key, then the
  literal usage, then the usage key itself, then the property key),
  word-wrapped to the remaining width.
- section titles are resolved through the message resolver as well (keys
  TXT_Usage, TXT_Options and TXT_Arguments).
"""
from rich.console import Console
from rich.text import Text

from .messages import Messages
from .utils import Unset, coalesce

WIDTH = 80

TXT_Usage = "TXT_Usage"
TXT_Options = "TXT_Options"
TXT_Arguments = "TXT_Arguments"


class UsageBuilder:
    """
    Renderer of usage messages.

    Parameters
    - messages: resolver with resolve(key, fallback, *arguments) (default Messages()).
    - width: int, the line length the text is wrapped to (default 80).
    """

    __slots__ = ("_messages", "_width")

    def __init__(self, messages=Unset, /, width=WIDTH):
        messages = coalesce(messages, Messages())
        if not callable(getattr(messages, "resolve", None)):
            raise TypeError("UsageBuilder() 'messages' must provide a resolve() method")
        if not isinstance(width, int) or isinstance(width, bool):
            raise TypeError("UsageBuilder() 'width' must be an integer")
        if width < 20:
            raise ValueError("UsageBuilder() 'width' must be at least 20")
        self._messages = messages
        self._width = width

    @property
    def messages(self):
        return self._messages

    @property
    def width(self):
        return self._width

    def build(self, command, definitions, /):
        """
        Return the usage message of command for the given definitions.
        """
        if not isinstance(command, str):
            raise TypeError("build() 'command' must be a string")
        if not command.strip():
            raise ValueError("build() 'command' cannot be empty")

        definitions = list(definitions)
        options = sorted((definition for definition in definitions if definition.isoption), key=lambda option: option.sortkey)
        arguments = sorted((definition for definition in definitions if definition.isargument), key=lambda argument: argument.sortkey)

        return "".join((
            self._synopsis(command, options, arguments),
            self._section("\n\n", self._messages.resolve(TXT_Options, "Options"), [
                ([_label(name, option.metavar) for name in option.names], option) for option in options
            ]),
            self._section("\n" if options else "\n\n", self._messages.resolve(TXT_Arguments, "Arguments"), [
                ([argument.metavar], argument) for argument in arguments
            ]),
        ))

    def _synopsis(self, command, options, arguments):
        items = [
            _label(option.name, option.metavar) if option.required else "[%s]" % _label(option.name, option.metavar)
            for option in options
        ] + [
            argument.metavar if argument.required else "[%s]" % argument.metavar
            for argument in arguments
        ]

        line = self._messages.resolve(TXT_Usage, "Usage: ") + command
        indent = " " * (len(line) + 1)
        lines = []
        for item in items:
            if len(line) + 1 + len(item) > self._width and line.strip():
                lines.append(line)
                line = indent + item
            else:
                line += " " + item
        lines.append(line)
        return "\n".join(line.rstrip() for line in lines)

    def _section(self, lead, title, rows):
        if not rows:
            return ""

        left = max(len(label) for labels, _ in rows for label in labels) + 2
        right = max(self._width - left, 10)
        console = Console(width=self._width, color_system=None, force_terminal=False)

        buffer = [lead, title, ":"]
        for labels, definition in rows:
            fallback = definition.usage or (definition.key if definition.usagekey is None else str(definition.usagekey))
            text = self._messages.resolve(definition.usagekey, fallback)
            wrapped = [line.plain.rstrip() for line in Text(text).wrap(console, right)] or [""]

            labels = labels + [""] * (len(wrapped) - len(labels))
            wrapped = wrapped + [""] * (len(labels) - len(wrapped))
            labels = [labels[0].ljust(left - 2) + ": "] + [label.ljust(left) for label in labels[1:]]

            for label, line in zip(labels, wrapped):
                buffer.append("\n" + (label + line).rstrip())
        buffer.append("\n")
        return "".join(buffer)

    def __repr__(self):
        return "usage-builder(width=%d)" % self._width


def _label(name, metavar):
    return name if metavar is None else "%s %s" % (name, metavar)


__all__ = (
    "TXT_Usage",
    "TXT_Options",
    "TXT_Arguments",
    "UsageBuilder",
)
