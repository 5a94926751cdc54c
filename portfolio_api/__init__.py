"""
Backend package for the portfolio site.

This package provides a FastAPI application serving site settings, projects,
blog posts and contact messages, with storage behind a small database
abstraction so the same routes run against SQLAlchemy or in-memory backends.
"""
