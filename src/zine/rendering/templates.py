"""Jinja2 template loader for the site pages."""

from importlib.resources import files
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape

from zine.core.i18n import translation_table
from zine.rendering import filters


class TemplateLoader:
    """Loads and renders the Jinja2 templates of the generated site.

    Supports:
    - Template inheritance (``base.jinja2``)
    - Custom filters (date formatting, word truncation, absolute URLs)
    - A ``t`` global holding the builtin strings of the site locale
    """

    def __init__(self, template_dir: Path | None = None, *, locale: str = "en") -> None:
        """Initialize TemplateLoader.

        Args:
            template_dir: Path to template directory. Defaults to the templates
                shipped in ``zine.rendering``.
            locale: Site locale used for the builtin strings.

        """
        if template_dir is None:
            template_dir = Path(str(files("zine.rendering").joinpath("templates")))

        self.template_dir = template_dir
        self.env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=select_autoescape(["html", "jinja2", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._register_filters()
        self.env.globals["t"] = translation_table(locale)

    def _register_filters(self) -> None:
        self.env.filters["format_date"] = filters.format_date
        self.env.filters["isoformat"] = filters.isoformat
        self.env.filters["truncate_words"] = filters.truncate_words
        self.env.filters["absolute_url"] = filters.absolute_url

    def load_template(self, template_name: str) -> Template:
        """Load a template by name.

        Raises:
            TemplateNotFound: If template does not exist

        """
        return self.env.get_template(template_name)

    def render_template(self, template_name: str, **context: Any) -> str:
        template = self.load_template(template_name)
        return template.render(**context)
