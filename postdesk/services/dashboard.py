"""Operator-facing controller: session state plus one method per dashboard action."""

from __future__ import annotations

import base64
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Mapping

import requests

from ..core.errors import (
    EmptySelectionError,
    MissingConfigError,
    PermissionDeniedError,
    PostdeskError,
)
from ..core.http_client import HttpClient
from ..platforms.base import AssetUploader
from ..platforms.sanity import (
    SanityClient,
    SanityCredentialStore,
    SanityMediaUploader,
    guess_content_type,
)
from ..security import build_secret_provider
from ..settings import AppConfig, DashboardSettings
from ..utils.file_helper import read_text, write_text
from ..utils.logging import LogNoiseFilter, get_logger, scoped_log_filter
from .csv_codec import export_filename, export_posts, import_posts
from .post_models import Post, PostInput, parse_price, slugify
from .post_repository import PostRepository

LOGGER = get_logger(__name__)

NOISY_LOGGERS = ("urllib3.connectionpool",)
NOISE_FRAGMENTS = ("Connection pool is full", "Starting new HTTPS connection")

_PERMISSION_CHECKLIST = (
    "\n\nPlease check:\n"
    "1. SANITY_API_WRITE_TOKEN is added to your environment variables\n"
    "2. The token has write permissions in your Sanity project\n"
    "3. Check the logs for detailed errors"
)


@dataclass(slots=True)
class ActionResult:
    ok: bool
    message: str
    data: Any = None


@dataclass(slots=True)
class PostForm:
    """Create-form fields as the operator typed them."""

    title: str = ""
    slug: str = ""
    content: str = ""
    image: str = ""
    price: str = ""
    categories: list[str] = field(default_factory=list)
    slug_edited: bool = False


@dataclass(slots=True)
class ImageSelection:
    filename: str
    content_type: str
    data: bytes

    @property
    def preview(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


@dataclass(slots=True)
class CategoryEdit:
    post_id: str
    values: list[str] = field(default_factory=list)


def _toggle(values: list[str], value: str) -> list[str]:
    return [item for item in values if item != value] if value in values else [*values, value]


class DashboardController:
    """Holds one operator session and renders every failure as plain text."""

    def __init__(
        self,
        repository: PostRepository,
        uploader: AssetUploader,
        settings: DashboardSettings | None = None,
        *,
        http_client: HttpClient | None = None,
    ) -> None:
        self._repository = repository
        self._uploader = uploader
        self._settings = settings or DashboardSettings()
        self._http_client = http_client
        self._log_scope: ExitStack | None = None
        self.form = PostForm()
        self.image: ImageSelection | None = None
        self.posts: list[Post] = []
        self.editing: CategoryEdit | None = None
        self.message = ""

    @property
    def categories(self) -> tuple[str, ...]:
        return self._repository.vocabulary or self._settings.categories

    def open(self) -> "DashboardController":
        if self._log_scope is None:
            stack = ExitStack()
            stack.enter_context(scoped_log_filter(LogNoiseFilter(NOISE_FRAGMENTS), NOISY_LOGGERS))
            self._log_scope = stack
        return self

    def close(self) -> None:
        if self._log_scope is not None:
            self._log_scope.close()
            self._log_scope = None
        if self._http_client is not None:
            self._http_client.close()

    def __enter__(self) -> "DashboardController":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # posts list

    def refresh(self) -> ActionResult:
        try:
            posts = self._repository.list()
        except PostdeskError as exc:
            return self._fail("Error fetching posts", exc)
        self.posts = posts
        return ActionResult(True, "", data=posts)

    def find_post(self, post_id: str) -> Post | None:
        return next((post for post in self.posts if post.id == post_id), None)

    # create form

    def set_title(self, value: str) -> None:
        self.form.title = value
        if not self.form.slug_edited:
            self.form.slug = slugify(value)

    def set_slug(self, value: str) -> None:
        self.form.slug = slugify(value)
        self.form.slug_edited = bool(value)

    def toggle_category(self, value: str) -> None:
        self.form.categories = _toggle(self.form.categories, value)

    def select_image(self, path: Path) -> ActionResult:
        content_type = guess_content_type(path)
        if not content_type.startswith("image/"):
            return self._finish(False, f"Error selecting image: {path.name} is not an image file")
        try:
            data = path.read_bytes()
        except OSError as exc:
            return self._finish(False, f"Error selecting image: {exc}")
        self.image = ImageSelection(filename=path.name, content_type=content_type, data=data)
        LOGGER.info("Image file selected", extra={"event": "dashboard.image", "file": path.name})
        return self._finish(True, "", data=self.image.preview)

    def upload_selected_image(self) -> ActionResult:
        if self.image is None:
            return self._finish(False, "Please select an image file first")
        try:
            asset = self._uploader.upload(self.image.data, self.image.filename, self.image.content_type)
        except PostdeskError as exc:
            return self._fail("Error uploading image", exc)
        self.form.image = asset.url
        return self._finish(True, "Image uploaded successfully!", data=asset.url)

    def submit(self) -> ActionResult:
        try:
            price = parse_price(self.form.price)
            post_input = PostInput(
                title=self.form.title,
                slug=self.form.slug,
                content=self.form.content,
                price=price,
                categories=list(self.form.categories),
                image=self.form.image or None,
            )
            post = self._repository.create(post_input)
        except PostdeskError as exc:
            return self._fail("Error adding post", exc)

        self.form = PostForm()
        self.image = None
        self.refresh()
        return self._finish(True, "Post added successfully!", data=post)

    # per-post actions

    def update_post(self, post_id: str, **fields: Any) -> ActionResult:
        try:
            self._repository.update(post_id, **fields)
        except PostdeskError as exc:
            return self._fail("Error updating post", exc)
        self.refresh()
        return self._finish(True, "Post updated successfully!")

    def delete_post(self, post_id: str) -> ActionResult:
        try:
            self._repository.delete(post_id)
        except PostdeskError as exc:
            return self._fail("Error deleting post", exc)
        self.refresh()
        return self._finish(True, "Post deleted successfully!")

    def start_editing_categories(self, post_id: str) -> ActionResult:
        post = self.find_post(post_id)
        if post is None:
            try:
                post = self._repository.get(post_id)
            except PostdeskError as exc:
                return self._fail("Error loading post", exc)
        self.editing = CategoryEdit(post_id=post.id, values=list(post.categories))
        return ActionResult(True, "", data=list(post.categories))

    def toggle_edit_category(self, value: str) -> None:
        if self.editing is not None:
            self.editing.values = _toggle(self.editing.values, value)

    def cancel_editing_categories(self) -> None:
        self.editing = None

    def save_categories(self) -> ActionResult:
        if self.editing is None:
            return self._finish(False, "No post selected for category editing")
        if not self.editing.values:
            return self._finish(False, "Please select at least one category")
        try:
            self._repository.replace_categories(self.editing.post_id, self.editing.values)
        except PostdeskError as exc:
            return self._fail("Error updating categories", exc)
        self.editing = None
        self.refresh()
        return self._finish(True, "Categories updated successfully!")

    def add_category(self, post_id: str, category: str) -> ActionResult:
        try:
            written = self._repository.add_category(post_id, category)
        except PostdeskError as exc:
            return self._fail("Error", exc)
        if not written:
            return self._finish(True, "Category already exists")
        self.refresh()
        return self._finish(True, "Category added successfully!")

    def remove_category(self, post_id: str, category: str) -> ActionResult:
        try:
            self._repository.remove_category(post_id, category)
        except PostdeskError as exc:
            return self._fail("Error", exc)
        self.refresh()
        return self._finish(True, "Category removed successfully!")

    # CSV

    def export_csv(self, directory: Path | None = None, *, today: date | None = None) -> ActionResult:
        try:
            posts = self._repository.list()
        except PostdeskError as exc:
            return self._fail("Error exporting CSV", exc)

        target = (directory or self._settings.export_dir) / export_filename(
            self._settings.export_prefix, today
        )
        try:
            write_text(target, export_posts(posts))
        except OSError as exc:
            return self._finish(False, f"Error exporting CSV: {exc}")
        LOGGER.info(
            "CSV export completed",
            extra={"event": "csv.export", "rows": len(posts), "path": str(target)},
        )
        return self._finish(True, f"Successfully exported {len(posts)} posts to CSV", data=target)

    def import_csv(self, path: Path) -> ActionResult:
        try:
            text = read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            return self._finish(False, f"Error reading CSV file: {exc}")
        try:
            report = import_posts(text, self._repository)
        except PostdeskError as exc:
            return self._fail("Error importing CSV", exc)

        message = f"Successfully imported {report.imported} post(s)"
        if report.errors:
            message += "\n\nErrors:\n" + "\n".join(report.errors)
        self.refresh()
        return self._finish(True, message, data=report)

    # rendering

    def _finish(self, ok: bool, message: str, *, data: Any = None) -> ActionResult:
        self.message = message
        return ActionResult(ok, message, data=data)

    def _fail(self, prefix: str, exc: PostdeskError) -> ActionResult:
        LOGGER.error(
            prefix,
            extra={"event": "dashboard.error", "error_type": type(exc).__name__, "detail": str(exc)},
        )
        message = f"{prefix}: {exc.message}"
        if isinstance(exc, PermissionDeniedError):
            message += _PERMISSION_CHECKLIST
        elif isinstance(exc, MissingConfigError) and exc.setting == "SANITY_API_WRITE_TOKEN":
            message += _PERMISSION_CHECKLIST
        elif isinstance(exc, EmptySelectionError):
            message = exc.message
        return self._finish(False, message)


def build_dashboard(
    config: AppConfig,
    *,
    env: Mapping[str, str] | None = None,
    session: requests.Session | None = None,
) -> DashboardController:
    """Wire the store client, repository and uploader from configuration."""
    provider = build_secret_provider(config.sanity.secrets_file, env=env)
    credentials = SanityCredentialStore(provider)
    LOGGER.info(
        "Content store configuration",
        extra={"event": "config.check", "settings": credentials.describe()},
    )
    http_client = HttpClient(http_settings=config.http, session=session)
    client = SanityClient(credentials, http_client, config.sanity)
    repository = PostRepository(
        client,
        document_type=config.sanity.document_type,
        vocabulary=config.dashboard.categories,
        revision_guard=config.sanity.revision_guard,
    )
    return DashboardController(
        repository, SanityMediaUploader(client), config.dashboard, http_client=http_client
    )
