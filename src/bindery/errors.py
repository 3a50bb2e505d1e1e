__all__ = ["BinderyError", "DependencyError", "AssetLoadError"]


class BinderyError(Exception):
    """Base class for errors raised by the wiring engine."""

    pass


class DependencyError(BinderyError):
    """Raised when a component's dependency cannot be resolved or is misannotated."""

    pass


class AssetLoadError(BinderyError):
    """Raised when an externally-addressed asset cannot be loaded."""

    def __init__(self, address: str, reason: str = ""):
        message = f"Failed to load asset at address '{address}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.address = address
