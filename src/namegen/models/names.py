"""Pydantic models for name generation requests and results."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Gender = Literal["male", "female", "diverse"]
Nationality = Literal["german", "british"]

GENDERS: tuple[str, ...] = ("male", "female", "diverse")
NATIONALITIES: tuple[str, ...] = ("german", "british")


class GenerationRequest(BaseModel):
    """Parameters for a single generation call."""

    model_config = ConfigDict(frozen=True)

    gender: str = Field(description="Gender key in the name table")
    nationality: str = Field(description="Nationality key in the name table")
    decade: str = Field(default="any", description="Decade label or the any-sentinel")
    use_alliteration: bool = False
    use_double_name: bool = False


class GeneratedName(BaseModel):
    """A generated first/last name pair with the parameters that produced it.

    Has no identity until it is promoted to a favorite.
    """

    model_config = ConfigDict(frozen=True)

    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    gender: str
    nationality: str
    decade: str = "any"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_double_name(self) -> bool:
        return "-" in self.first_name

    @classmethod
    def from_request(
        cls,
        request: GenerationRequest,
        first_name: str,
        last_name: str,
    ) -> "GeneratedName":
        """Compose a result from the request that produced it."""
        return cls(
            first_name=first_name,
            last_name=last_name,
            gender=request.gender,
            nationality=request.nationality,
            decade=request.decade,
        )
