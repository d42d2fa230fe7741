"""Quill discovery backend: search, listings and stats over the blog store."""
