"""Category and tag facets for search suggestions."""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Mapping

from quill.domain.search import schemas


def _top_n_stages(limit: int) -> list[dict[str, Any]]:
	return [
		{"$group": {"_id": "$value", "count": {"$sum": 1}}},
		{"$sort": {"count": -1}},
		{"$limit": limit},
	]


def build_facet_pipeline(match: Mapping[str, Any], *, limit: int) -> list[dict[str, Any]]:
	"""Aggregation pipeline counting categories and exploded tags under `match`."""

	return [
		{"$match": dict(match)},
		{
			"$facet": {
				"categories": [
					{"$match": {"category": {"$nin": [None, ""]}}},
					{"$project": {"value": "$category"}},
					*_top_n_stages(limit),
				],
				"tags": [
					{"$unwind": "$tags"},
					{"$match": {"tags": {"$nin": [None, ""]}}},
					{"$project": {"value": "$tags"}},
					*_top_n_stages(limit),
				],
			}
		},
	]


def _buckets(rows: Iterable[Mapping[str, Any]]) -> list[schemas.FacetBucket]:
	return [
		schemas.FacetBucket(value=str(row["_id"]), count=int(row.get("count") or 0))
		for row in rows
		if row.get("_id") not in (None, "")
	]


def parse_facet_output(output: list[Mapping[str, Any]]) -> schemas.Suggestions:
	"""Convert the single `$facet` result document into suggestions."""

	if not output:
		return schemas.Suggestions()
	doc = output[0]
	return schemas.Suggestions(
		categories=_buckets(doc.get("categories") or []),
		tags=_buckets(doc.get("tags") or []),
	)


def summarize_documents(documents: Iterable[Mapping[str, Any]], *, limit: int) -> schemas.Suggestions:
	"""Compute the same facets as the pipeline over already-matched documents."""

	categories: Counter[str] = Counter()
	tags: Counter[str] = Counter()
	for doc in documents:
		category = doc.get("category")
		if category:
			categories[str(category)] += 1
		for tag in doc.get("tags") or []:
			if tag:
				tags[str(tag)] += 1
	return schemas.Suggestions(
		categories=[schemas.FacetBucket(value=value, count=count) for value, count in categories.most_common(limit)],
		tags=[schemas.FacetBucket(value=value, count=count) for value, count in tags.most_common(limit)],
	)
