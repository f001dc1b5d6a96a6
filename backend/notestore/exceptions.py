"""Business errors raised by the note tree. The dispatcher turns them into response messages."""


class NoteStoreError(Exception):
    """Base for every error that is reported to the client as a plain message."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(NoteStoreError):
    default_message = "Not found"


class FolderNotFound(NotFound):
    default_message = "Folder not found"


class NoteNotFound(NotFound):
    default_message = "Note not found"


class Unauthorized(NoteStoreError):
    """Same message as a missing note so private notes do not leak their existence."""

    default_message = "Not found or not authorized"


class ValidationError(NoteStoreError):
    default_message = "Invalid request"


class ParentNotFound(ValidationError):
    default_message = "Parent folder not found"


class CycleDetected(ValidationError):
    default_message = "Cannot move folder into itself or its own subfolder"


class InvalidInviter(ValidationError):
    default_message = "Invalid inviter"


class InvalidInvitee(ValidationError):
    default_message = "Cannot invite the owning node"


class NoInvite(NoteStoreError):
    default_message = "No invite found"


class ContentNotFound(NoteStoreError):
    default_message = "Note content not found"


class MigrationError(NoteStoreError):
    default_message = "Failed to migrate data"


class UnsupportedFutureVersion(MigrationError):
    def __init__(self, version: int, current: int):
        self.version = version
        self.current = current
        super().__init__(
            f"Cannot import data from newer version {version} (current version is {current})"
        )


class BundleError(MigrationError):
    default_message = "Failed to read export bundle"
