"""Console output helpers shared by the resolver components."""
import sys

PREFIX = "[SYMBOL]"


def safe_print(msg: str):
    """Print message safely, handling unicode encoding issues on Windows."""
    try:
        print(msg)
    except UnicodeEncodeError:
        encoding = sys.stdout.encoding or 'utf-8'
        print(msg.encode(encoding, errors='replace').decode(encoding, errors='replace'))


def warn(msg: str):
    """Warnings are always shown, verbose or not."""
    safe_print(f"{PREFIX} - {msg}")


class VerboseLogger:
    """Mixin giving a component a verbose-gated _log()."""

    # Enable verbose logging for debugging symbol lookups
    VERBOSE = False

    verbose = None

    def _log(self, message: str):
        """Log a message if verbose mode is enabled."""
        enabled = self.VERBOSE if self.verbose is None else self.verbose
        if enabled:
            safe_print(f"{PREFIX} {message}")
