r"""
cmdspec token normalization.

Two passes turn the raw token vector into the flat sequence the parser walks:

- expand(tokens, environment)
  Argument-file inclusion. A token that starts with '@' names a file whose
  lines are spliced in at its position:
    • lines starting with '#' are comments and dropped,
    • a leading backslash is removed, so '\#x' and '\@x' become the literal
      tokens '#x' and '@x' (an escaped '@' line is never expanded),
    • blank and whitespace-only lines are dropped,
    • ${NAME} is replaced from the environment mapping (os.environ by default).
  Expansion continues inside the spliced lines. A path that cannot be read is
  kept as a literal token and not retried for the rest of the call; a file
  that refers back to itself (directly or through other files) is not
  expanded again inside its own expansion.

- normalize(tokens, *, options=True)
  Shape normalization while option parsing is active:
    • '--' stops option parsing for everything that follows (kept as a token),
    • '--name=value' splits into '--name', 'value',
    • '-xVALUE' splits into '-x', 'VALUE',
    • anything else passes through.
  Values split off an option are Attached tokens: a str subclass that is never
  taken for an option, so '--offset=-5' works.

TokenCursor walks the normalized sequence for one parse call.
"""
import logging
import os
from pathlib import Path

from .faults import MissingOperandError
from .utils import Unset, coalesce, substitute

logger = logging.getLogger(__name__)

LEAD_IN = "-"
STOP = LEAD_IN * 2
ESCAPE = "@"


class Attached(str):
    """
    Token split off an option token ('--name=value' or '-xVALUE').
    """
    __slots__ = ()


class Literal(str):
    """
    Token taken verbatim from an argument file line that was escaped.
    """
    __slots__ = ()


def _load(path, environment):
    """
    Read an argument file and return its effective lines.

    Raises OSError (and UnicodeDecodeError, a ValueError) when the file cannot
    be read.
    """
    lines = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        if line.startswith("#"):
            continue
        escaped = line.startswith("\\")
        if escaped:
            line = line[1:]
        if not line.strip():
            continue
        line = substitute(line, environment)
        lines.append(Literal(line) if escaped else line)
    return lines


def expand(tokens, environment=Unset, /):
    """
    Expand every '@file' reference in tokens; return a new list.

    parameters
    - tokens: Iterable[str]
    - environment: Mapping[str, str] | Unset
      variables for ${NAME} substitution; os.environ when Unset.

    returns
    - list[str]: the tokens with every readable argument file spliced in.
    """
    environment = coalesce(environment, os.environ)
    failed = set()

    def walk(tokens, chain):
        result = []
        for token in tokens:
            if isinstance(token, Literal) or not token.startswith(ESCAPE) or token in failed:
                result.append(token)
                continue
            if token in chain:
                logger.warning("argument file %r refers back to itself; kept literally", token[1:])
                result.append(token)
                continue
            try:
                lines = _load(token[1:], environment)
            except (OSError, ValueError) as exception:
                logger.warning("cannot read argument file %r: %s", token[1:], exception)
                failed.add(token)
                result.append(token)
                continue
            logger.debug("argument file %r contributes %d token(s)", token[1:], len(lines))
            result.extend(walk(lines, chain | {token}))
        return result

    return [str(token) for token in walk(list(tokens), frozenset())]


def normalize(tokens, /, *, options=True):
    """
    Split combined option tokens; return a new list.

    parameters
    - tokens: Iterable[str]
    - options: bool
      whether option parsing is active at the start (False when no option is
      defined at all; then every token passes unchanged).
    """
    result = []
    for token in tokens:
        if not options:
            result.append(token)
        elif token == STOP:
            result.append(token)
            options = False
        elif token.startswith(STOP):
            # '--a=x' is the shortest splittable form: the name keeps one character
            if (position := token.find("=")) >= len(STOP) + 1:
                result.append(token[:position])
                result.append(Attached(token[position + 1:]))
            else:
                result.append(token)
        elif token.startswith(LEAD_IN) and len(token) > 2:
            result.append(token[:2])
            result.append(Attached(token[2:]))
        else:
            result.append(token)
    return result


class TokenCursor:
    """
    Cursor over the normalized token sequence of one parse call.

    The cursor shares the ParseState of the call: state.parsing tells whether
    option-shaped tokens are still options, state.current is the definition
    blamed when an operand is missing.
    """

    __slots__ = ("_tokens", "_position", "_state")

    def __init__(self, tokens, state, /):
        self._tokens = list(tokens)
        self._position = 0
        self._state = state

    @property
    def tokens(self):
        return tuple(self._tokens)

    @property
    def position(self):
        return self._position

    @property
    def state(self):
        return self._state

    @property
    def current(self):
        """
        The token under the cursor (IndexError when exhausted).
        """
        return self._tokens[self._position]

    @property
    def remaining(self):
        return len(self._tokens) - self._position

    def __bool__(self):
        return self._position < len(self._tokens)

    def __len__(self):
        return len(self._tokens)

    def peek(self, offset=0, /):
        """
        Return the token offset places after the cursor, or None past the end.
        """
        if offset < 0:
            raise ValueError("peek() offset must not be negative")
        try:
            return self._tokens[self._position + offset]
        except IndexError:
            return None

    def advance(self, n=1, /):
        if n < 0:
            raise ValueError("advance() count must not be negative")
        self._position = min(self._position + n, len(self._tokens))

    def push_back(self, first, second, /):
        """
        Replace the current token by the pair (first, second).

        Used by handlers that find a token packs two things (for instance an
        option glued to its value) and need them back as separate tokens.
        """
        if not first or not second:
            raise ValueError("push_back() parts must be non-empty strings")
        self._tokens[self._position:self._position + 1] = [first, second]

    def isoption(self, token, /):
        """
        Whether token would be taken for an option right now.
        """
        return (
            self._state.parsing
            and not isinstance(token, Attached)
            and token.startswith(LEAD_IN)
        )

    def operand(self, offset=0, /):
        """
        Return the value token offset places after the cursor.

        raises
        - MissingOperandError when the sequence is exhausted or the token is an
          option (while option parsing is active). The error names the option
          being processed, or the metavar of the argument.
        """
        token = self.peek(offset)
        if token is None or self.isoption(token):
            current = self._state.current
            subject = getattr(current, "name", None) or getattr(current, "metavar", None)
            raise MissingOperandError(subject, definition=current)
        return token

    def __repr__(self):
        return "token-cursor(tokens=%r, position=%d)" % (self._tokens, self._position)


__all__ = (
    "LEAD_IN",
    "STOP",
    "ESCAPE",
    "Attached",
    "Literal",
    "expand",
    "normalize",
    "TokenCursor",
)
