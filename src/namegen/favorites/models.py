"""Pydantic v2 models for the favorites collection.

A favorite is a generated name promoted to a persistent record with an
identity, notes, tags and an optional image. Each favorite also owns a
free-form detail record edited separately.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class FavoritePerson(BaseModel):
    """A favorited name with its annotations.

    Attributes:
        id: Unique identifier (UUID string)
        first_name: First name (may be a hyphenated double name)
        last_name: Last name
        gender: Gender key the name was generated for
        nationality: Nationality key the name was generated for
        decade: Decade label the name was generated for
        notes: Free-text notes
        tags: Sorted, de-duplicated tag list
        image_path: Optional path to a picture of the person
        favorited_at: When the name was added to favorites
        updated_at: When the record was last modified
    """

    id: str = Field(..., description="UUID string identifier")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    gender: str = Field(default="female")
    nationality: str = Field(default="german")
    decade: str | None = Field(default=None)
    notes: str = Field(default="")
    tags: list[str] = Field(default_factory=list)
    image_path: str | None = Field(default=None, description="Path to an image file")
    favorited_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        """Strip whitespace, drop blanks and duplicates, sort."""
        return sorted({t.strip() for t in v if t and t.strip()})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def has_tag(self, tag: str) -> bool:
        return any(t.lower() == tag.lower() for t in self.tags)


class PersonDetails(BaseModel):
    """Free-form character sheet attached to a favorite."""

    age: str = ""
    characteristics: str = ""
    clothing_style: str = ""
    wants: str = ""
    needs: str = ""
    notes: str = ""

    def is_empty(self) -> bool:
        """True when no field has any content."""
        return not any(v.strip() for v in self.model_dump().values())


class FavoritesStats(BaseModel):
    """Statistics about the favorites collection."""

    total_favorites: int = 0
    by_nationality: dict[str, int] = Field(default_factory=dict)
    by_gender: dict[str, int] = Field(default_factory=dict)
    by_tag: dict[str, int] = Field(default_factory=dict)
    with_details: int = 0
    with_image: int = 0
    last_updated: datetime | None = None
