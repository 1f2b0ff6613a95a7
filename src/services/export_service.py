"""Bookmark export as CSV."""
import csv
import io
from collections.abc import Iterable
from datetime import date

from models.bookmark import Bookmark

CSV_HEADERS = ["URL", "Title", "Domain", "Note", "IsFavorite", "IsPinned", "Status", "CreatedAt"]


def _bool(value: bool) -> str:
    return "true" if value else "false"


def bookmarks_to_csv(bookmarks: Iterable[Bookmark]) -> str:
    '''
    Render bookmarks as CSV.

    Every value is double-quoted and quotes inside values are doubled, so
    `He said "hi"` becomes `"He said ""hi"""`.
    '''
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for bookmark in bookmarks:
        writer.writerow([
            bookmark.url,
            bookmark.title or "",
            bookmark.domain,
            bookmark.note or "",
            _bool(bookmark.is_favorite),
            _bool(bookmark.is_pinned),
            bookmark.status,
            bookmark.created_at.isoformat(),
        ])
    return buffer.getvalue()


def export_filename(today: date) -> str:
    """Download name for an export made on `today`."""
    return f"bookmarks_export_{today.isoformat()}.csv"
