"""sitebot: a polite single-seed crawler for pages and sitemaps."""

__version__ = "0.1.0"
