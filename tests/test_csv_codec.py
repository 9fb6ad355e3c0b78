"""Tests for CSV export/import of posts."""

from __future__ import annotations

import csv
from datetime import date

import pytest

from postdesk.core.errors import DuplicateSlugError, ValidationError
from postdesk.services import csv_codec
from postdesk.services.csv_codec import (
    export_filename,
    export_posts,
    import_posts,
    parse_csv,
    split_fields,
)
from postdesk.services.post_models import Post

HEADER = "ID,Title,Slug,Content,Image,Price,Categories,CreatedAt"


def _post(**overrides) -> Post:
    data = dict(
        id="abc123",
        created_at="2024-12-01T10:00:00Z",
        title="Retro Pad",
        slug="retro-pad",
        content="A controller",
        price=19.5,
        categories=("controllers", "games"),
        image=None,
    )
    data.update(overrides)
    return Post(**data)


def test_export_layout_is_exact() -> None:
    post = _post(image="https://cdn.example.com/pad.png", price=10.0)

    csv_text = export_posts([post])

    assert csv_text.split("\n") == [
        HEADER,
        'abc123,"Retro Pad",retro-pad,"A controller",https://cdn.example.com/pad.png,10,'
        '"controllers;games",2024-12-01T10:00:00Z',
    ]


def test_export_escapes_quotes_in_title() -> None:
    csv_text = export_posts([_post(title='He said "hi"')])

    row = csv_text.split("\n")[1]
    assert ',"He said ""hi""",' in row


def test_export_keeps_input_order_and_empty_image() -> None:
    posts = [_post(id="new", slug="b"), _post(id="old", slug="a")]

    lines = export_posts(posts).split("\n")

    assert [line.split(",")[0] for line in lines[1:]] == ["new", "old"]
    assert ',"A controller",,19.5,' in lines[1]


def test_export_with_no_posts_is_header_only() -> None:
    assert export_posts([]) == HEADER


def test_export_filename_uses_prefix_and_iso_date() -> None:
    assert export_filename("sanity", date(2024, 12, 1)) == "sanity-posts-2024-12-01.csv"


def test_quote_escaping_decodes_back() -> None:
    assert split_fields('x,"He said ""hi""",slug') == ["x", 'He said "hi"', "slug"]


def test_round_trip_preserves_fields() -> None:
    posts = [
        _post(title='Commas, "quotes"; and semis', content='Body, with "quotes"', slug="one"),
        _post(id="2", title="Plain", content="  padded  ", slug="two", categories=("music",), price=0),
        _post(id="3", title="Cheap; deal", slug="three", image="https://x/y.png", price=3.25),
    ]

    rows = list(parse_csv(export_posts(posts)))

    assert [row.error for row in rows] == [None, None, None]
    for post, row in zip(posts, rows):
        decoded = row.post_input
        assert decoded.title == post.title
        assert decoded.slug == post.slug
        assert decoded.content == post.content.strip()
        assert decoded.price == post.price
        assert set(decoded.categories) == set(post.categories)
        assert decoded.image == post.image


def test_parse_rejects_short_rows_and_bad_prices() -> None:
    text = "\n".join(
        [
            HEADER,
            'a,"Title",slug,"c",,notanumber,"games",now',
            'b,"Only",three',
        ]
    )

    rows = list(parse_csv(text))

    assert rows[0].row_number == 2
    assert "Invalid price" in rows[0].error
    assert rows[1].row_number == 3
    assert "at least 7 fields" in rows[1].error


def test_parse_splits_and_cleans_categories() -> None:
    text = HEADER + '\nid,"T",t,"c",,1," games ; ;music;",x'

    (row,) = parse_csv(text)

    assert row.post_input.categories == ["games", "music"]


def test_parse_empty_categories_field_yields_no_categories() -> None:
    (row,) = parse_csv(HEADER + '\nid,"T",t,"c",,1,"",x')

    assert row.post_input.categories == []


def test_parse_requires_header_and_one_row() -> None:
    with pytest.raises(ValidationError, match="empty or invalid"):
        list(parse_csv(HEADER + "\n\n"))


def test_blank_lines_are_skipped_but_counted() -> None:
    text = "\n".join([HEADER, 'a,"A",a,"c",,1,"games",x', "", 'b,"B",b,"c",,1,"games",x'])

    rows = list(parse_csv(text))

    assert [row.row_number for row in rows] == [2, 4]


def _csv(rows: list[str]) -> str:
    return "\n".join([HEADER, *rows])


def test_import_is_best_effort_with_stable_row_numbers(repository, store) -> None:
    text = _csv(
        [
            'x,"One",one,"c",,1,"games",t',
            'x,"Two",two,"c",,2,"games",t',
            'x,"Three",three,"c",,abc,"games",t',
            'x,"Four",four,"c",,4,"games",t',
            'x,"Five",five,"c",,5,"games",t',
        ]
    )

    report = import_posts(text, repository)

    assert report.imported == 4
    assert len(report.errors) == 1
    assert report.errors[0].startswith("Row 4")
    assert report.imported_titles == ["One", "Two", "Four", "Five"]
    slugs = sorted(doc["slug"]["current"] for doc in store.documents.values())
    assert slugs == ["five", "four", "one", "two"]


def test_import_records_create_failures_and_continues(repository, store) -> None:
    store.seed(slug={"_type": "slug", "current": "taken"})
    text = _csv(
        [
            'x,"Dup",Taken,"c",,1,"games",t',
            'x,"Fresh",fresh,"c",,1,"games",t',
        ]
    )

    report = import_posts(text, repository)

    assert report.imported == 1
    assert report.errors == [f"Row 2 (Dup): {DuplicateSlugError('taken').message}"]


def test_import_rows_are_created_in_file_order(repository, store) -> None:
    text = _csv([f'x,"P{i}",p{i},"c",,1,"games",t' for i in range(3)])

    import_posts(text, repository)

    created = [batch[0]["create"]["slug"]["current"] for batch in store.mutations]
    assert created == ["p0", "p1", "p2"]


def test_import_ignores_id_column(repository, store) -> None:
    existing = dict(store.seed(_id="keep-me", slug={"_type": "slug", "current": "old"}))

    import_posts(_csv(['keep-me,"New",new,"c",,1,"games",t']), repository)

    assert store.documents["keep-me"] == existing
    assert len(store.documents) == 2


def test_import_of_export_with_very_long_content(repository, store) -> None:
    body = "x" * 200_000
    text = export_posts([_post(slug="long", content=body), _post(id="2", slug="short")])

    report = import_posts(text, repository)

    assert report.errors == []
    assert report.imported == 2
    contents = {doc["slug"]["current"]: doc["content"] for doc in store.documents.values()}
    assert len(contents["long"]) == 200_000


def test_field_size_limit_is_restored_after_parsing() -> None:
    before = csv.field_size_limit()

    list(parse_csv(export_posts([_post(content="y" * 150_000)])))

    assert csv.field_size_limit() == before


def test_unparseable_row_is_reported_per_row(repository, monkeypatch: pytest.MonkeyPatch) -> None:
    real_reader = csv.reader

    def failing_reader(lines, **kwargs):
        if "broken" in lines[0]:
            raise csv.Error("field larger than field limit")
        return real_reader(lines, **kwargs)

    monkeypatch.setattr(csv_codec.csv, "reader", failing_reader)
    text = _csv(['x,"Broken",broken,"c",,1,"games",t', 'x,"Fine",fine,"c",,1,"games",t'])

    report = import_posts(text, repository)

    assert report.imported == 1
    assert report.errors == ["Row 2: Invalid CSV format: field larger than field limit"]


@pytest.mark.parametrize("separator", ["\x0b", "\x0c", "\x1c", "\x85", "\u2028"])
def test_only_newline_separates_records(separator: str) -> None:
    post = _post(title=f"Left{separator}Right", content=f"one{separator}two")

    (row,) = parse_csv(export_posts([post]))

    assert row.error is None
    assert row.post_input.title == post.title
    assert row.post_input.content == post.content


def test_crlf_line_endings_are_accepted() -> None:
    text = export_posts([_post(slug="a"), _post(slug="b")]).replace("\n", "\r\n")

    rows = list(parse_csv(text))

    assert [row.post_input.slug for row in rows] == ["a", "b"]
    assert rows[1].row_number == 3
