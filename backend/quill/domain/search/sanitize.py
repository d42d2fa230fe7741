"""Markup stripping for blog bodies returned by search and listings."""

from __future__ import annotations

from bs4 import BeautifulSoup

EXCERPT_LENGTH = 200


def strip_markup(body: str | None) -> str:
	"""Return the visible text of an HTML/markdown body with whitespace collapsed."""

	if not body:
		return ""
	text = BeautifulSoup(body, "html.parser").get_text(" ")
	return " ".join(text.split())


def excerpt(text: str, *, length: int = EXCERPT_LENGTH) -> str:
	if len(text) <= length:
		return text
	cut = text[:length].rsplit(" ", 1)[0] or text[:length]
	return f"{cut.rstrip()}…"
