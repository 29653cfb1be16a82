"""
cmdspec message resolution.

The engine never embeds locale logic. Whenever it needs user-facing text (an
error message, a usage line, a section title) it asks a resolver for the text
registered under a key, handing over the literal fallback and the positional
arguments:

    resolver.resolve(key, fallback, *arguments) -> str

Messages is the default resolver. Its catalog is either given explicitly or
read from a __messages__ mapping in __main__, so a host application can
translate the whole surface without touching the engine:

    # in the host's __main__
    __messages__ = {
        FaultCode.OPTION_MISSING: "Die erforderliche Option '{0}' fehlt",
        "TXT_Usage": "Verwendung: ",
    }

Templates use str.format positional placeholders ({0}, {1}, ...). When the
key is unknown, or the template does not format with the given arguments,
the fallback literal is used verbatim.
"""
import logging
from collections.abc import Mapping

from .utils import Unset, coalesce

logger = logging.getLogger(__name__)


class Messages:
    """
    Default message resolver backed by a key → template catalog.

    Parameters
    - catalog: Mapping | Unset
      Explicit catalog. When Unset, the catalog is looked up on every call as
      the __messages__ attribute of __main__ (missing attribute → empty).
    """

    __slots__ = ("_catalog",)

    def __init__(self, catalog=Unset, /):
        if not isinstance(catalog, Mapping | Unset):
            raise TypeError("Messages() argument must be a mapping")
        self._catalog = catalog

    @property
    def catalog(self):
        return coalesce(self._catalog, getattr(__import__("__main__"), "__messages__", {}))

    def resolve(self, key, fallback, /, *arguments):
        """
        Return the text for key, formatted with arguments.

        Lookup order: catalog[key] → fallback. A template that fails to format
        (missing positional, bad field) falls back to the literal, which is
        formatted the same way; if even that fails the literal is returned
        verbatim.
        """
        try:
            template = self.catalog[key]
        except (KeyError, TypeError):
            template = Unset

        if template is not Unset:
            try:
                return str(template).format(*arguments)
            except (IndexError, KeyError, ValueError) as exception:
                logger.debug("template for %r does not format: %s", key, exception)

        if not isinstance(fallback, str):
            return str(fallback)
        try:
            return fallback.format(*arguments)
        except (IndexError, KeyError, ValueError):
            return fallback

    def __repr__(self):
        return "messages(catalog=%r)" % (self._catalog,)


__all__ = (
    "Messages",
)
