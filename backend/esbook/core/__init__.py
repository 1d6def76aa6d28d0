from .config import settings
from .logging import configure_logging
from .sanitize import clean_for_html, escape_for_html, escape_unescaped_dollar

__all__ = ["settings", "configure_logging", "clean_for_html", "escape_for_html", "escape_unescaped_dollar"]
