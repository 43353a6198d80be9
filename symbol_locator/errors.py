"""Exceptions raised by the symbol locator."""


class SymbolLocatorError(Exception):
    """Base class for all symbol locator errors."""


class SymbolParseError(SymbolLocatorError):
    """A symbol file was found but could not be interpreted."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot parse symbol file {self.path}: {reason}")


class ResolutionCancelled(SymbolLocatorError):
    """The caller's monitor asked for the resolution to stop."""


class TransportError(SymbolLocatorError):
    """A network fetch failed. Only used inside the transport layer."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")
