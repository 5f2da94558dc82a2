from __future__ import annotations


class WizardError(Exception):
    """Base class for wizard failures."""


class BaselineUnavailableError(WizardError):
    """The live search settings have not been fetched, or the last fetch failed."""


class InvalidTransitionError(WizardError):
    """A navigation action is not allowed from the current wizard state."""


class SubmissionInFlightError(WizardError):
    """An update or replace command is already running for this session."""


class UnknownFieldError(WizardError, ValueError):
    """A draft update named a field the configuration does not have."""


class SettingsRequestError(WizardError):
    """The search settings backend answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class UpdateRejectedError(SettingsRequestError):
    pass


class ReplaceRejectedError(SettingsRequestError):
    pass
