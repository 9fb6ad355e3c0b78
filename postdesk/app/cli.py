"""Unified command-line interface for the post dashboard."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Sequence

from ..core.errors import ValidationError
from ..platforms.sanity import SanityCredentialStore
from ..security import build_secret_provider
from ..services.dashboard import ActionResult, DashboardController, build_dashboard
from ..services.post_models import Post, format_price, parse_price
from ..settings import AppConfig, load_config
from ..utils.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)

DashboardFactory = Callable[[AppConfig], DashboardController]


def main(argv: Sequence[str] | None = None, *, factory: DashboardFactory | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        structured=not args.log_plain,
    )

    handler: Callable[[argparse.Namespace, DashboardFactory], int] | None = getattr(
        args, "handler", None
    )
    if handler is None:
        parser.print_help(sys.stderr)
        return 1
    return handler(args, factory or build_dashboard)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="postdesk", description="Manage posts in the content store")
    parser.add_argument("--config", help="Path to configuration file", default=None)
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    _add_post_commands(subparsers)
    _add_category_commands(subparsers)
    _add_csv_commands(subparsers)
    _add_image_commands(subparsers)
    _add_config_commands(subparsers)

    return parser


def _add_post_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    posts_parser = subparsers.add_parser("posts", help="List, create, edit and delete posts")
    posts_subparsers = posts_parser.add_subparsers(dest="posts_command", required=True)

    list_parser = posts_subparsers.add_parser("list", help="List posts, newest first")
    list_parser.add_argument(
        "--format",
        choices=("json", "table"),
        default="table",
        help="Output format",
    )
    list_parser.set_defaults(handler=_handle_posts_list)

    create_parser = posts_subparsers.add_parser("create", help="Create a post")
    create_parser.add_argument("--title", required=True)
    create_parser.add_argument("--slug", help="Defaults to a slug derived from the title")
    create_parser.add_argument("--content", default="")
    create_parser.add_argument("--price", required=True, help="Non-negative number")
    create_parser.add_argument(
        "--category",
        action="append",
        default=[],
        metavar="CATEGORY",
        help="Repeat for several categories",
    )
    image_group = create_parser.add_mutually_exclusive_group()
    image_group.add_argument("--image-file", type=Path, help="Upload this image and attach it")
    image_group.add_argument("--image-url", help="Attach an already uploaded image URL")
    create_parser.set_defaults(handler=_handle_posts_create)

    update_parser = posts_subparsers.add_parser("update", help="Patch fields of a post")
    update_parser.add_argument("post_id")
    update_parser.add_argument("--title")
    update_parser.add_argument("--slug")
    update_parser.add_argument("--content")
    update_parser.add_argument("--price")
    update_parser.add_argument("--image-url", dest="image", help="Empty string removes the image")
    update_parser.set_defaults(handler=_handle_posts_update)

    delete_parser = posts_subparsers.add_parser("delete", help="Delete a post")
    delete_parser.add_argument("post_id")
    delete_parser.set_defaults(handler=_handle_posts_delete)


def _add_category_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    categories_parser = subparsers.add_parser("categories", help="Edit post categories")
    categories_subparsers = categories_parser.add_subparsers(
        dest="categories_command", required=True
    )

    vocabulary_parser = categories_subparsers.add_parser("list", help="Show the allowed categories")
    vocabulary_parser.set_defaults(handler=_handle_categories_list)

    set_parser = categories_subparsers.add_parser("set", help="Replace all categories of a post")
    set_parser.add_argument("post_id")
    set_parser.add_argument("categories", nargs="*", metavar="CATEGORY")
    set_parser.set_defaults(handler=_handle_categories_set)

    add_parser = categories_subparsers.add_parser("add", help="Add one category to a post")
    add_parser.add_argument("post_id")
    add_parser.add_argument("category")
    add_parser.set_defaults(handler=_handle_categories_add)

    remove_parser = categories_subparsers.add_parser("remove", help="Remove one category")
    remove_parser.add_argument("post_id")
    remove_parser.add_argument("category")
    remove_parser.set_defaults(handler=_handle_categories_remove)


def _add_csv_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    csv_parser = subparsers.add_parser("csv", help="Bulk export and import")
    csv_subparsers = csv_parser.add_subparsers(dest="csv_command", required=True)

    export_parser = csv_subparsers.add_parser("export", help="Write all posts to a CSV file")
    export_parser.add_argument("--output-dir", type=Path, default=None)
    export_parser.set_defaults(handler=_handle_csv_export)

    import_parser = csv_subparsers.add_parser("import", help="Create posts from a CSV file")
    import_parser.add_argument("path", type=Path)
    import_parser.set_defaults(handler=_handle_csv_import)


def _add_image_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    image_parser = subparsers.add_parser("image", help="Asset store operations")
    image_subparsers = image_parser.add_subparsers(dest="image_command", required=True)

    upload_parser = image_subparsers.add_parser("upload", help="Upload an image and print its URL")
    upload_parser.add_argument("path", type=Path)
    upload_parser.set_defaults(handler=_handle_image_upload)


def _add_config_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    config_parser = subparsers.add_parser("config", help="Inspect configuration")
    config_subparsers = config_parser.add_subparsers(dest="config_command", required=True)

    check_parser = config_subparsers.add_parser("check", help="Report which settings are present")
    check_parser.set_defaults(handler=_handle_config_check)


def _handle_posts_list(args: argparse.Namespace, factory: DashboardFactory) -> int:
    with factory(load_config(args.config)) as dashboard:
        result = dashboard.refresh()
        if not result.ok:
            return _emit(result)
        if args.format == "json":
            print(json.dumps([post.to_dict() for post in dashboard.posts], ensure_ascii=False, indent=2))
        else:
            _print_posts_table(dashboard.posts)
    return 0


def _handle_posts_create(args: argparse.Namespace, factory: DashboardFactory) -> int:
    with factory(load_config(args.config)) as dashboard:
        dashboard.set_title(args.title)
        if args.slug:
            dashboard.set_slug(args.slug)
        dashboard.form.content = args.content
        dashboard.form.price = args.price
        for category in args.category:
            if category not in dashboard.form.categories:
                dashboard.toggle_category(category)

        if args.image_file is not None:
            selected = dashboard.select_image(args.image_file)
            if not selected.ok:
                return _emit(selected)
            uploaded = dashboard.upload_selected_image()
            if not uploaded.ok:
                return _emit(uploaded)
        elif args.image_url:
            dashboard.form.image = args.image_url

        LOGGER.info(
            "Creating post",
            extra={"event": "cli.command", "command": "posts.create", "slug": dashboard.form.slug},
        )
        return _emit(dashboard.submit())


def _handle_posts_update(args: argparse.Namespace, factory: DashboardFactory) -> int:
    fields: dict[str, object] = {
        "title": args.title,
        "slug": args.slug,
        "content": args.content,
        "image": args.image,
    }
    if args.price is not None:
        try:
            fields["price"] = parse_price(args.price)
        except ValidationError as exc:
            print(f"Error updating post: {exc.message}", file=sys.stderr)
            return 1
    fields = {name: value for name, value in fields.items() if value is not None}
    with factory(load_config(args.config)) as dashboard:
        return _emit(dashboard.update_post(args.post_id, **fields))


def _handle_posts_delete(args: argparse.Namespace, factory: DashboardFactory) -> int:
    with factory(load_config(args.config)) as dashboard:
        return _emit(dashboard.delete_post(args.post_id))


def _handle_categories_list(args: argparse.Namespace, factory: DashboardFactory) -> int:
    config = load_config(args.config)
    for category in config.dashboard.categories:
        print(category)
    return 0


def _handle_categories_set(args: argparse.Namespace, factory: DashboardFactory) -> int:
    with factory(load_config(args.config)) as dashboard:
        started = dashboard.start_editing_categories(args.post_id)
        if not started.ok:
            return _emit(started)
        for category in set(started.data) ^ set(args.categories):
            dashboard.toggle_edit_category(category)
        return _emit(dashboard.save_categories())


def _handle_categories_add(args: argparse.Namespace, factory: DashboardFactory) -> int:
    with factory(load_config(args.config)) as dashboard:
        return _emit(dashboard.add_category(args.post_id, args.category))


def _handle_categories_remove(args: argparse.Namespace, factory: DashboardFactory) -> int:
    with factory(load_config(args.config)) as dashboard:
        return _emit(dashboard.remove_category(args.post_id, args.category))


def _handle_csv_export(args: argparse.Namespace, factory: DashboardFactory) -> int:
    with factory(load_config(args.config)) as dashboard:
        result = dashboard.export_csv(args.output_dir)
        if result.ok:
            print(result.data)
        return _emit(result)


def _handle_csv_import(args: argparse.Namespace, factory: DashboardFactory) -> int:
    with factory(load_config(args.config)) as dashboard:
        return _emit(dashboard.import_csv(args.path))


def _handle_image_upload(args: argparse.Namespace, factory: DashboardFactory) -> int:
    with factory(load_config(args.config)) as dashboard:
        selected = dashboard.select_image(args.path)
        if not selected.ok:
            return _emit(selected)
        result = dashboard.upload_selected_image()
        if result.ok:
            print(result.data)
        return _emit(result)


def _handle_config_check(args: argparse.Namespace, factory: DashboardFactory) -> int:
    config = load_config(args.config)
    credentials = SanityCredentialStore(build_secret_provider(config.sanity.secrets_file))
    report = credentials.describe()
    width = max(len(key) for key in report)
    for key, status in report.items():
        print(key.ljust(width), status, sep="  ")
    return 0 if all(status != "missing" for status in report.values()) else 1


def _emit(result: ActionResult) -> int:
    if result.message:
        print(result.message, file=sys.stdout if result.ok else sys.stderr)
    return 0 if result.ok else 1


def _print_posts_table(posts: Sequence[Post]) -> None:
    if not posts:
        print("No posts found.")
        return
    rows = [
        (post.id, post.slug, format_price(post.price), ", ".join(post.categories), post.title)
        for post in posts
    ]
    headers = ("ID", "Slug", "Price", "Categories", "Title")
    widths = [max(len(headers[i]), *(len(row[i]) for row in rows)) for i in range(len(headers) - 1)]
    print(*(h.ljust(w) for h, w in zip(headers, widths)), headers[-1], sep="  ")
    for row in rows:
        print(*(value.ljust(w) for value, w in zip(row, widths)), row[-1], sep="  ")


__all__ = ["main"]
