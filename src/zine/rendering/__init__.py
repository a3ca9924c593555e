"""Site rendering: Jinja2 templates, Atom feed and sitemap."""
