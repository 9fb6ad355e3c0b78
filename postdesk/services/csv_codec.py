"""CSV interchange for bulk post export and import.

Export layout, one post per line::

    ID,Title,Slug,Content,Image,Price,Categories,CreatedAt
    <id>,"<title>",<slug>,"<content>",<image>,<price>,"<cat1;cat2>",<createdAt>

Title and content are always quoted with inner quotes doubled. Categories are
joined with ``;`` and quoted. Embedded newlines are not supported: every
physical line is one record.
"""

from __future__ import annotations

import csv
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Iterator, Sequence

from ..core.errors import PostdeskError, ValidationError
from ..utils.logging import get_logger
from .post_models import ImportReport, Post, PostInput, format_price, parse_price
from .post_repository import PostRepository

LOGGER = get_logger(__name__)

CSV_HEADER = ("ID", "Title", "Slug", "Content", "Image", "Price", "Categories", "CreatedAt")
MIN_FIELDS = 7
# exports put whole post bodies in one field, well past the csv default of 128 KiB
FIELD_SIZE_LIMIT = 2**31 - 1


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def export_posts(posts: Sequence[Post]) -> str:
    """Encode posts in the order given (callers pass newest first)."""
    rows = [",".join(CSV_HEADER)]
    for post in posts:
        rows.append(
            ",".join(
                [
                    post.id,
                    _quote(post.title),
                    post.slug,
                    _quote(post.content),
                    post.image or "",
                    format_price(post.price),
                    '"' + ";".join(post.categories) + '"',
                    post.created_at,
                ]
            )
        )
    return "\n".join(rows)


def export_filename(prefix: str, today: date | None = None) -> str:
    day = today or date.today()
    return f"{prefix}-posts-{day.isoformat()}.csv"


@dataclass(slots=True)
class ParsedRow:
    """One data line; exactly one of ``post_input`` and ``error`` is set."""

    row_number: int
    post_input: PostInput | None = None
    error: str | None = None


def split_fields(line: str) -> list[str]:
    """Split a line into fields; quoted fields may contain commas and ``""``."""
    with _field_size_limit(FIELD_SIZE_LIMIT):
        try:
            return next(csv.reader([line], strict=False), [])
        except csv.Error as exc:
            raise ValidationError(f"Invalid CSV format: {exc}") from exc


@contextmanager
def _field_size_limit(limit: int) -> Iterator[None]:
    # the limit is interpreter-wide; restore it for other csv users
    previous = csv.field_size_limit(limit)
    try:
        yield
    finally:
        csv.field_size_limit(previous)


def _row_to_input(fields: Sequence[str]) -> PostInput:
    if len(fields) < MIN_FIELDS:
        raise ValidationError(
            f"Invalid CSV format: expected at least {MIN_FIELDS} fields, found {len(fields)}"
        )
    _, title, slug, content, image, price_raw, categories_raw = fields[:MIN_FIELDS]
    price = parse_price(price_raw)
    categories = [item.strip() for item in categories_raw.split(";") if item.strip()]
    return PostInput(
        title=title.strip(),
        slug=slug.strip(),
        content=content.strip(),
        price=price,
        categories=categories,
        image=image.strip() or None,
    )


def parse_csv(text: str) -> Iterator[ParsedRow]:
    """Decode CSV text; the header line is skipped without validation.

    Row numbers are physical line numbers with the header as line 1, so blank
    lines are skipped but still counted.
    """
    # records end at "\n" only; other Unicode line breaks stay inside fields
    lines = [line.removesuffix("\r") for line in text.strip().split("\n")]
    if len(lines) < 2:
        raise ValidationError("CSV file is empty or invalid")

    for row_number, raw in enumerate(lines[1:], start=2):
        line = raw.strip()
        if not line:
            continue
        try:
            yield ParsedRow(row_number, post_input=_row_to_input(split_fields(line)))
        except ValidationError as exc:
            yield ParsedRow(row_number, error=exc.message)


def import_posts(text: str, repository: PostRepository) -> ImportReport:
    """Create one post per row, sequentially, continuing past failed rows."""
    report = ImportReport()
    rows = parse_csv(text)
    for row in rows:
        if row.post_input is None:
            report.record_failure(row.row_number, row.error or "Unknown error")
            continue

        title = row.post_input.title
        try:
            repository.create(row.post_input)
        except PostdeskError as exc:
            report.record_failure(row.row_number, exc.message, title=title)
            continue
        report.record_success(title)

    LOGGER.info(
        "CSV import completed",
        extra={"event": "csv.import", "imported": report.imported, "errors": len(report.errors)},
    )
    return report
