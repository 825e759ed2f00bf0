"""Shared CLI context with lazy-initialized dependencies."""

from pubcal.config import PubcalConfig
from pubcal.processing.calendar_manager import CalendarManager


class CLIContext:
    """Shared context with lazy-initialized dependencies for CLI commands.

    Usage:
        ctx = CLIContext()
        record = ctx.manager.get_calendar(calendar_id)
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        config: PubcalConfig | None = None,
    ):
        """Initialize CLI context.

        Args:
            verbose: If True, enable info logging on the console
            quiet: If True, suppress non-error output
            config: Configuration to use instead of the environment
        """
        self.verbose = verbose
        self.quiet = quiet

        # Lazy-loaded dependencies
        self._config: PubcalConfig | None = config
        self._manager: CalendarManager | None = None

    @property
    def config(self) -> PubcalConfig:
        """Get configuration (lazy-loaded)."""
        if self._config is None:
            self._config = PubcalConfig.from_env()
        return self._config

    @property
    def manager(self) -> CalendarManager:
        """Get calendar manager (lazy-loaded)."""
        if self._manager is None:
            self._manager = CalendarManager.from_config(self.config)
        return self._manager


# Global context instance (set by Typer callback)
_ctx: CLIContext | None = None


def get_context() -> CLIContext:
    """Get the current CLI context.

    Raises:
        RuntimeError: If context not initialized
    """
    if _ctx is None:
        raise RuntimeError("CLI context not initialized. This should not happen.")
    return _ctx


def set_context(ctx: CLIContext) -> None:
    """Set the global CLI context."""
    global _ctx
    _ctx = ctx
