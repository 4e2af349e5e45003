import re
import uuid
from sqlalchemy.orm import Session
from expense_splitter.models.groups import Group

MAX_SLUG_LENGTH = 100


def _fallback_slug(length: int = 8) -> str:
    return f"group-{uuid.uuid4().hex[:length]}"


def generate_slug(name: str) -> str:
    """
    Build a URL-friendly slug from a group name.

    "Goa Trip 2024!" -> "goa-trip-2024"
    """
    slug = re.sub(r'[\s_]+', '-', (name or '').lower().strip())
    slug = re.sub(r'[^\w\-]', '', slug)
    slug = re.sub(r'-+', '-', slug).strip('-')

    if not slug:
        return _fallback_slug()

    return slug[:MAX_SLUG_LENGTH].rstrip('-')


def create_group_slug(name: str, db: Session) -> str:
    """Return a slug for the name that no other group uses, suffixing -2, -3, ... on clashes"""
    base_slug = generate_slug(name)
    if len(base_slug) < 3:
        base_slug = f"group-{base_slug}"

    slug = base_slug
    counter = 1
    while True:
        if not db.query(Group).filter(Group.slug == slug).first():
            return slug

        counter += 1
        slug = f"{base_slug}-{counter}"
