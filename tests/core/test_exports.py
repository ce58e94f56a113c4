"""Tests for download helpers."""

from datetime import date

from skillhub.core.exports import date_stamp, download_response, filename_part, render_csv


def test_render_csv_quotes_everything() -> None:
    text = render_csv(("Name", "Score"), [("O'Brien, Pat", 3), ('Say "hi"', 0)])
    assert text.splitlines() == [
        '"Name","Score"',
        '"O\'Brien, Pat","3"',
        '"Say ""hi""","0"',
    ]


def test_filename_part() -> None:
    assert filename_part("Intro to C++ (2025)") == "Intro_to_C____2025_"


def test_date_stamp() -> None:
    assert date_stamp(date(2025, 2, 1)) == "2025-02-01"


def test_download_response() -> None:
    response = download_response("a,b\n", "x.csv", media_type="text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="x.csv"'
    inline = download_response("<p></p>", "x.html", media_type="text/html", inline=True)
    assert inline.headers["content-disposition"] == 'inline; filename="x.html"'
