"""Post management services: repository, CSV codec and dashboard controller."""

from .csv_codec import export_filename, export_posts, import_posts, parse_csv
from .dashboard import ActionResult, DashboardController, build_dashboard
from .post_models import ImportReport, Post, PostInput, normalize_categories, slugify
from .post_repository import PostRepository

__all__ = [
    "ActionResult",
    "DashboardController",
    "ImportReport",
    "Post",
    "PostInput",
    "PostRepository",
    "build_dashboard",
    "export_filename",
    "export_posts",
    "import_posts",
    "normalize_categories",
    "parse_csv",
    "slugify",
]
