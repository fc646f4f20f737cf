"""Tests for CollectionRegistry with an in-memory collection repository."""

from typing import Any

import pytest

from spindle.application.dtos.collection import CollectionResult
from spindle.application.services.collection_registry import (
    CollectionRegistry,
    default_url_pattern,
)
from spindle.core.config import Settings
from spindle.domain.exceptions import (
    CollectionAlreadyExistsException,
    CollectionNotFoundException,
    SchemaValidationException,
    UrlPatternConflictException,
    ValidationException,
)
from spindle.domain.fields import (
    DEFAULT_FIELD_NAMES,
    FieldDefinition,
    merge_with_default_fields,
    strip_default_fields,
)


class FakeCollectionRepo:
    """Keeps rows as (site_id, slug) -> stored attributes."""

    def __init__(self) -> None:
        self.rows: dict[tuple[str, str], dict[str, Any]] = {}

    def _result(self, site_id: str, slug: str) -> CollectionResult:
        row = self.rows[(site_id, slug)]
        custom = tuple(FieldDefinition.from_dict(f) for f in row["schema"]["fields"])
        return CollectionResult(
            id=f"{site_id}:{slug}",
            site_id=site_id,
            name=row["name"],
            slug=slug,
            description=row.get("description"),
            url_pattern=row["url_pattern"],
            fields=merge_with_default_fields(custom),
            custom_fields=tuple(strip_default_fields(custom)),
            settings=dict(row.get("settings") or {}),
        )

    async def get_by_slug(self, site_id: str, slug: str) -> CollectionResult | None:
        if (site_id, slug) not in self.rows:
            return None
        return self._result(site_id, slug)

    async def list_for_site(self, site_id: str) -> list[CollectionResult]:
        return [self._result(s, slug) for (s, slug) in self.rows if s == site_id]

    async def create_collection(self, site_id: str, *, slug: str, **values: Any) -> CollectionResult:
        self.rows[(site_id, slug)] = values
        return self._result(site_id, slug)

    async def update_collection(
        self, site_id: str, slug: str, **updates: Any
    ) -> CollectionResult | None:
        if (site_id, slug) not in self.rows:
            return None
        self.rows[(site_id, slug)].update(updates)
        return self._result(site_id, slug)

    async def delete_collection(self, site_id: str, slug: str) -> bool:
        return self.rows.pop((site_id, slug), None) is not None


@pytest.fixture
def repo() -> FakeCollectionRepo:
    return FakeCollectionRepo()


@pytest.fixture
def registry(repo: FakeCollectionRepo, settings: Settings) -> CollectionRegistry:
    return CollectionRegistry(repo, "site-a", settings=settings)


def test_requires_site_id(repo: FakeCollectionRepo) -> None:
    with pytest.raises(ValidationException):
        CollectionRegistry(repo, "")


async def test_create_uses_default_pattern_and_strips_default_fields(
    registry: CollectionRegistry, repo: FakeCollectionRepo
) -> None:
    created = await registry.create_collection(
        "Blog Posts",
        fields=[
            {"name": "title", "type": "text"},
            {"name": "body", "type": "markdown", "required": True},
        ],
    )
    assert created.slug == "blog-posts"
    assert created.url_pattern == default_url_pattern("blog-posts") == "/blog-posts/{slug}"
    stored = repo.rows[("site-a", "blog-posts")]["schema"]["fields"]
    assert [f["name"] for f in stored] == ["body"]
    names = [f.name for f in created.fields]
    assert set(DEFAULT_FIELD_NAMES) <= set(names)
    assert names[-1] == "body"


async def test_duplicate_slug_rejected(registry: CollectionRegistry) -> None:
    await registry.create_collection("Blog")
    with pytest.raises(CollectionAlreadyExistsException):
        await registry.create_collection("Blog", url_pattern="/articles/{slug}")


async def test_overlapping_patterns_rejected(registry: CollectionRegistry) -> None:
    await registry.create_collection("Blog", url_pattern="/blog/{slug}")
    with pytest.raises(UrlPatternConflictException):
        await registry.create_collection("News", url_pattern="/{section}/{slug}")


async def test_overlap_allowed_when_disabled(repo: FakeCollectionRepo) -> None:
    lenient = CollectionRegistry(
        repo,
        "site-a",
        settings=Settings(database_url="", reject_overlapping_url_patterns=False),
    )
    await lenient.create_collection("Blog", url_pattern="/blog/{slug}")
    news = await lenient.create_collection("News", url_pattern="/{section}/{slug}")
    assert news.slug == "news"


async def test_invalid_inputs(registry: CollectionRegistry) -> None:
    with pytest.raises(ValidationException):
        await registry.create_collection("  ")
    with pytest.raises(ValidationException):
        await registry.create_collection("Blog", url_pattern="/blog/{id}")
    with pytest.raises(ValidationException):
        await registry.create_collection("Blog", slug="Not A Slug")
    with pytest.raises(SchemaValidationException):
        await registry.create_collection("Blog", fields=[{"name": "x", "type": "nope"}])
    with pytest.raises(SchemaValidationException) as exc:
        await registry.create_collection(
            "Blog", fields=[{"name": "code", "type": "text", "validation": {"pattern": "["}}]
        )
    assert "invalid validation.pattern" in exc.value.validation_errors[0]


@pytest.mark.parametrize("pattern", ["/blog/{slug}/{slug}", "/blog/{1x}/{slug}"])
async def test_malformed_placeholders_rejected(registry: CollectionRegistry, pattern: str) -> None:
    with pytest.raises(ValidationException):
        await registry.create_collection("Blog", url_pattern=pattern)
    assert await registry.get_collection("blog") is None


async def test_url_matching_first_collection_wins(registry: CollectionRegistry) -> None:
    await registry.create_collection("Blog", url_pattern="/blog/{slug}")
    await registry.create_collection("Docs", url_pattern="/docs/{slug}")

    match = await registry.get_collection_by_url_pattern("/docs/getting-started/")
    assert match is not None
    assert match.collection.slug == "docs"
    assert match.slug == "getting-started"
    assert await registry.get_collection_by_url_pattern("/unknown/x") is None


async def test_lookups_are_site_scoped(
    registry: CollectionRegistry, repo: FakeCollectionRepo, settings: Settings
) -> None:
    other = CollectionRegistry(repo, "site-b", settings=settings)
    await other.create_collection("Blog")

    assert await registry.get_collection("blog") is None
    with pytest.raises(CollectionNotFoundException) as exc:
        await registry.require_collection("blog")
    assert exc.value.details == {"collection": "blog", "site_id": "site-a"}
    assert await registry.get_all_collections() == []


async def test_update_and_delete(registry: CollectionRegistry) -> None:
    await registry.create_collection("Blog")
    updated = await registry.update_collection(
        "blog",
        name="Journal",
        fields=[{"name": "body", "type": "markdown"}, {"name": "slug", "type": "text"}],
        settings={"seo": {"defaultOgImage": "/blog.png"}},
    )
    assert updated.name == "Journal"
    assert [f.name for f in updated.custom_fields] == ["body"]
    assert updated.default_og_image == "/blog.png"

    with pytest.raises(ValidationException):
        await registry.update_collection("blog", slug="other")
    with pytest.raises(CollectionNotFoundException):
        await registry.update_collection("missing", name="x")

    assert await registry.delete_collection("blog") is True
    assert await registry.delete_collection("blog") is False
