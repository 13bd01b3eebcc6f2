"""
Slug allocation for advisor landing pages

A slug is derived from the advisor's display name and made unique with a
numeric suffix ("juan-perez", "juan-perez-1", ...). The lookup only finds a
candidate; uniqueness is enforced by the unique index on advisors.slug, so
the insert itself is retried from the next suffix when a concurrent
creation wins the race.
"""

import re
import unicodedata
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from app.models.advisor import Advisor

logger = structlog.get_logger(__name__)

FALLBACK_SLUG = "asesor"
MAX_INSERT_ATTEMPTS = 5

T = TypeVar("T")


def normalize_slug(name: str) -> str:
    """Lowercase, hyphenate whitespace runs and strip diacritics"""
    slug = re.sub(r"\s+", "-", name.strip().lower())
    slug = unicodedata.normalize("NFD", slug)
    slug = "".join(ch for ch in slug if not unicodedata.combining(ch))
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug or FALLBACK_SLUG


def candidate(base: str, counter: int) -> str:
    return base if counter == 0 else f"{base}-{counter}"


async def slug_exists(session: AsyncSession, slug: str) -> bool:
    result = await session.exec(select(Advisor.id).where(Advisor.slug == slug))
    return result.first() is not None


async def next_free_slug(session: AsyncSession, base: str, start: int = 0) -> tuple[str, int]:
    """Check base, base-1, base-2, ... and return the first unused slug and its counter"""
    counter = start
    while await slug_exists(session, candidate(base, counter)):
        counter += 1
    return candidate(base, counter), counter


async def insert_with_unique_slug(
    session: AsyncSession,
    name: str,
    insert: Callable[[str], Awaitable[T]],
) -> T:
    """Run insert(slug) in a savepoint, moving to the next suffix on a slug conflict"""
    base = normalize_slug(name)
    counter = 0
    attempts = 0
    while True:
        slug, counter = await next_free_slug(session, base, counter)
        try:
            async with session.begin_nested():
                return await insert(slug)
        except IntegrityError:
            attempts += 1
            if attempts >= MAX_INSERT_ATTEMPTS:
                raise
            logger.warning(f"Slug taken concurrently, retrying: {slug}")
            counter += 1
