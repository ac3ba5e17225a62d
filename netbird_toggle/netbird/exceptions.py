"""Custom exceptions for NetBird control."""


class NetbirdError(Exception):
    """Base exception for NetBird-related errors."""
    pass


class SettingsError(NetbirdError):
    """Raised when a stored setting cannot be turned into an option"""
    pass


class CommandError(NetbirdError):
    """Base exception for command-related errors."""
    pass


class ValidationError(CommandError):
    """Raised when command validation fails."""
    pass
