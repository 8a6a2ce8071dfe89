"""Errors raised by the quest workflows.

Every error carries the HTTP status and the message the API reports for it;
``app.main`` renders them as ``{"error": message}``.
"""


class QuestLedgerError(Exception):
    status_code = 500
    message = "Internal server error."

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(QuestLedgerError):
    status_code = 400
    message = "Malformed request body."


class ConflictError(QuestLedgerError):
    status_code = 400
    message = "Resource already exists."


class AlreadyCompletedError(ConflictError):
    message = "Quest already completed by user."


# Lookups that miss are reported as 500, matching the published API.
class NotFoundError(QuestLedgerError):
    status_code = 500
    message = "Not found."


class QuestNotFoundError(NotFoundError):
    message = "Quest not found."


class UserNotFoundError(NotFoundError):
    message = "User not found."


class StorageError(QuestLedgerError):
    status_code = 500
    message = "Storage error."


class UserExistsError(ConflictError):
    message = "User with this name already exists."


class QuestExistsError(ConflictError):
    message = "Quest with this name already exists."
