"""Domain models backing search & discovery results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

SortSpec = list[tuple[str, int]]

CONTENT_TYPE_ALL = "all"
CONTENT_TYPE_BLOGS = "blogs"
CONTENT_TYPE_USERS = "users"

CATEGORIES = (
	"Technology",
	"Programming",
	"AI",
	"Design",
	"Business",
	"Lifestyle",
	"Health",
	"Travel",
	"Education",
	"Others",
)


@dataclass(slots=True)
class BranchPlan:
	"""Store filter and sort for one entity type."""

	filter: dict[str, Any]
	sort: SortSpec


@dataclass(slots=True)
class SearchPlan:
	"""Output of the query builder: what to read, in which order, which page."""

	content: Optional[BranchPlan]
	authors: Optional[BranchPlan]
	facet_filter: dict[str, Any]
	page: int
	limit: int
	empty: bool = False

	@property
	def skip(self) -> int:
		return (self.page - 1) * self.limit


def _as_id(value: Any) -> str:
	return str(value) if value is not None else ""


def _as_int(value: Any) -> int:
	try:
		return max(int(value or 0), 0)
	except (TypeError, ValueError):
		return 0


@dataclass(slots=True)
class BlogRecord:
	"""Normalized Content record read from the `blogs` collection."""

	id: str
	title: str
	content: str = ""
	slug: Optional[str] = None
	category: Optional[str] = None
	tags: list[str] = field(default_factory=list)
	created_by: Optional[str] = None
	created_at: Optional[datetime] = None
	views: int = 0
	likes: int = 0
	status: str = "draft"
	language: str = "html"

	@classmethod
	def from_document(cls, doc: Mapping[str, Any]) -> "BlogRecord":
		return cls(
			id=_as_id(doc.get("_id")),
			title=str(doc.get("title") or ""),
			content=str(doc.get("content") or ""),
			slug=doc.get("slug"),
			category=doc.get("category") or None,
			tags=[str(tag) for tag in doc.get("tags") or []],
			created_by=doc.get("createdBy"),
			created_at=doc.get("createdAt"),
			views=_as_int(doc.get("views")),
			likes=_as_int(doc.get("likes")),
			status=str(doc.get("status") or "draft"),
			language=str(doc.get("language") or "html"),
		)

	def to_document(self) -> dict[str, Any]:
		return {
			"_id": self.id,
			"title": self.title,
			"content": self.content,
			"slug": self.slug,
			"category": self.category,
			"tags": [tag.lower() for tag in self.tags],
			"createdBy": self.created_by,
			"createdAt": self.created_at,
			"views": self.views,
			"likes": self.likes,
			"status": self.status,
			"language": self.language,
		}


@dataclass(slots=True)
class AuthorRecord:
	"""Normalized Author record read from the `users` collection."""

	id: str
	name: str
	username: Optional[str] = None
	email: Optional[str] = None
	bio: str = ""
	image: Optional[str] = None
	follower: int = 0
	following: int = 0
	blog_count: int = 0
	created_at: Optional[datetime] = None

	@classmethod
	def from_document(cls, doc: Mapping[str, Any]) -> "AuthorRecord":
		return cls(
			id=_as_id(doc.get("_id")),
			name=str(doc.get("name") or ""),
			username=doc.get("username"),
			email=doc.get("email"),
			bio=str(doc.get("bio") or ""),
			image=doc.get("image"),
			follower=_as_int(doc.get("follower")),
			following=_as_int(doc.get("following")),
			blog_count=_as_int(doc.get("noOfBlogs")),
			created_at=doc.get("createdAt"),
		)

	def to_document(self) -> dict[str, Any]:
		return {
			"_id": self.id,
			"name": self.name,
			"username": self.username,
			"email": self.email,
			"bio": self.bio,
			"image": self.image,
			"follower": self.follower,
			"following": self.following,
			"noOfBlogs": self.blog_count,
			"createdAt": self.created_at,
		}
