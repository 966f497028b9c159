"""Exception types for NuGetSync."""


class NugetSyncError(Exception):
    """Base class for all NuGetSync errors."""


class InvalidVersion(NugetSyncError, ValueError):
    """A version string could not be parsed."""


class RulesError(NugetSyncError):
    """The rules file is malformed."""


class RulesFileNotFound(RulesError):
    """The rules file does not exist."""


class SettingsError(NugetSyncError):
    """Settings are missing or invalid."""


class InventoryError(NugetSyncError):
    """An inventory document could not be read."""


class DotnetError(NugetSyncError):
    """A dotnet CLI invocation failed."""


class ReportError(NugetSyncError):
    """A report could not be produced."""
