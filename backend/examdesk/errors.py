"""Exceptions raised by the gateway and the exam wizard services."""


class GatewayError(Exception):
    """A data access call failed (fetch, insert, update, delete, rpc)."""

    def __init__(self, message: str, collection: str = None):
        super().__init__(message)
        self.collection = collection


class WizardError(Exception):
    """Base class for wizard workflow errors."""


class NotAProfessorError(WizardError):
    """The current user has no professor profile."""


class ExamNotEditableError(WizardError):
    """The exam left the draft status and can no longer be edited."""


class WizardStateError(WizardError):
    """The requested action is not available in the wizard's current state."""


class WizardNotFoundError(WizardError):
    """No live wizard session with that id for this user."""


class ExamNotFoundError(WizardError):
    """No exam with that id."""
