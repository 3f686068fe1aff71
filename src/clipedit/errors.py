"""Error kinds raised by the engine adapter and the edit/export sessions."""


class ClipEditError(Exception):
    """Base class for clipedit errors."""


class EngineFailure(ClipEditError):
    """The engine ran but reported a non-zero exit."""

    def __init__(self, args: list[str], log: str = ""):
        super().__init__(f"ffmpeg exited with failure ({len(log)} bytes of log)")
        self.command = list(args)
        self.log = log


class EngineException(ClipEditError):
    """The engine could not be launched or did not return a result."""


class EngineTimeout(EngineException):
    """The engine did not finish within the configured timeout."""


class NoSelectionError(ClipEditError):
    """An edit was requested while no clip is selected."""


class NoSourceError(ClipEditError):
    """Export was requested with nothing loaded."""


class SessionBusyError(ClipEditError):
    """Another operation is already running on this session."""
