"""Shared exceptions for service layer operations."""


class NotFoundError(Exception):
    """
    Raised when a target does not exist or must not be confirmed to exist.

    Services raise it both for missing rows and for rows the principal is not
    allowed to see (another user's bookmark, a room the principal is not a
    member of), so callers cannot enumerate ids.
    """

    entity_name = "Resource"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or f"{self.entity_name} not found")


class BookmarkNotFoundError(NotFoundError):
    """Raised when a bookmark is not found for the principal."""

    entity_name = "Bookmark"


class TagNotFoundError(NotFoundError):
    """Raised when a tag is not found for the principal."""

    entity_name = "Tag"


class NoteNotFoundError(NotFoundError):
    """Raised when a note is not found or not visible to the principal."""

    entity_name = "Note"


class TodoNotFoundError(NotFoundError):
    """Raised when a todo is not found or not visible to the principal."""

    entity_name = "Todo"


class RoomNotFoundError(NotFoundError):
    """Raised when a room does not exist or the principal is not a member."""

    entity_name = "Room"


class UserNotFoundError(NotFoundError):
    """Raised when an invite target cannot be resolved."""

    entity_name = "User"


class PermissionDeniedError(Exception):
    """Raised when the principal can see a resource but lacks rights to change it."""

    def __init__(self, message: str = "You do not have permission to perform this action") -> None:
        super().__init__(message)


class ValidationFailedError(Exception):
    """Raised for input that passes schema validation but is semantically invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConflictError(Exception):
    """Base class for operations rejected because of the current state."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class TagAlreadyExistsError(ConflictError):
    """Raised when a user already owns a tag with the requested name."""

    def __init__(self, tag_name: str) -> None:
        self.tag_name = tag_name
        super().__init__(f"Tag '{tag_name}' already exists")


class AlreadyMemberError(ConflictError):
    """Raised when inviting a user who already holds a membership in the room."""

    def __init__(self) -> None:
        super().__init__("User is already a member")


class OwnerCannotLeaveError(ConflictError):
    """Raised when an owner tries to leave a room that still has other members."""

    def __init__(self, member_count: int) -> None:
        self.member_count = member_count
        super().__init__(
            "The room owner cannot leave while other members remain "
            f"({member_count} members)",
        )
