"""seoeco - live-analysis client for the AI SEO Ecosystem API."""

__version__ = "1.0.0"
