"""Shared utility functions for service layer."""


def escape_ilike(value: str) -> str:
    r"""
    Escape special ILIKE characters so user input matches literally.

    PostgreSQL treats % and _ as wildcards and \\ as the escape character.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
