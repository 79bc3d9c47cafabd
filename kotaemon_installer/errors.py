"""Installer error hierarchy.

Every fatal condition raises an ``InstallerError`` subclass. The CLI is the
only place that turns them into a diagnostic and exit status 1.
"""

from __future__ import annotations


class InstallerError(RuntimeError):
    """Base class for fatal installer failures.

    Parameters
    ----------
    message: str
        User-facing diagnostic.
    hint: str | None
        Optional remediation shown below the diagnostic.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class PreflightError(InstallerError):
    pass


class UnsupportedArch(InstallerError):
    pass


class BootstrapError(InstallerError):
    pass


class EnvironmentSetupError(InstallerError):
    pass


class DependencyError(InstallerError):
    pass


class ModelRuntimeError(InstallerError):
    pass


class DownloadError(InstallerError):
    pass


class IntegrityError(InstallerError):
    pass


class ArchiveError(InstallerError):
    pass


class LaunchError(InstallerError):
    pass
