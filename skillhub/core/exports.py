"""Helpers for downloadable CSV and HTML files."""

import csv
import io
import re
from collections.abc import Iterable, Sequence
from datetime import date

from fastapi import Response


_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


def render_csv(headers: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    """Render rows as CSV text with every field quoted."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()


def filename_part(text: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _UNSAFE_FILENAME_CHARS.sub("_", text)


def date_stamp(day: date) -> str:
    return day.isoformat()


def download_response(
    content: str, filename: str, media_type: str, inline: bool = False
) -> Response:
    """Response that the browser saves as ``filename`` (or shows, if inline)."""
    disposition = "inline" if inline else "attachment"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'{disposition}; filename="{filename}"'},
    )
