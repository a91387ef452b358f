import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from unidecode import unidecode


def slugify(text):
    text = unidecode(text).lower()
    text = re.sub(r'[^a-z0-9]+', '-', text).strip('-')
    return text


async def unique_slug(db: AsyncSession, model, text: str, exclude_id: int | None = None) -> str:
    """Slugify `text` and append -2, -3, ... until no other row of `model` uses it."""
    base = slugify(text) or "item"
    candidate = base
    suffix = 2
    while True:
        query = select(model.id).where(model.slug == candidate)
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)
        if (await db.execute(query)).first() is None:
            return candidate
        candidate = f"{base}-{suffix}"
        suffix += 1
