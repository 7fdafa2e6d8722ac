from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # Wire and storage names are camelCase, Python attributes snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecipeBase(CamelModel):
    name: str = Field(
        ..., json_schema_extra={"example": "Simple Pancakes"}
    )
    instructions: str = Field(
        ..., json_schema_extra={"example": "Mix, rest for ten minutes, fry until golden."}
    )
    prep_time_minutes: int = Field(default=0, ge=0)
    cook_time_minutes: int = Field(default=0, ge=0)
    servings: int = Field(default=1, ge=1)
    ingredients: List[str] = Field(
        default_factory=list,
        json_schema_extra={"example": ["flour", "milk", "egg"]},
    )
    tags: List[str] = Field(
        default_factory=list,
        json_schema_extra={"example": ["breakfast", "quick"]},
    )


class RecipeCreate(CamelModel):
    """Body of ``POST /recipes``.

    Everything is optional here so that a missing name or instructions can be
    answered with a 400 by the route instead of a schema error. ``null``
    values fall back to the defaults in :meth:`with_defaults`.
    """

    name: Optional[str] = None
    instructions: Optional[str] = None
    prep_time_minutes: Optional[int] = Field(default=None, ge=0)
    cook_time_minutes: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, ge=1)
    ingredients: Optional[List[str]] = None
    tags: Optional[List[str]] = None

    def has_required_fields(self) -> bool:
        return bool(self.name) and bool(self.instructions)

    def with_defaults(self) -> RecipeBase:
        return RecipeBase(
            name=self.name or "",
            instructions=self.instructions or "",
            prep_time_minutes=self.prep_time_minutes or 0,
            cook_time_minutes=self.cook_time_minutes or 0,
            servings=self.servings or 1,
            ingredients=self.ingredients or [],
            tags=self.tags or [],
        )


class RecipeUpdate(CamelModel):
    name: Optional[str] = None
    instructions: Optional[str] = None
    prep_time_minutes: Optional[int] = Field(default=None, ge=0)
    cook_time_minutes: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, ge=1)
    ingredients: Optional[List[str]] = None
    tags: Optional[List[str]] = None

    def changes(self) -> dict:
        """Fields the caller actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class Recipe(RecipeBase):
    id: str


class RecipeCollection(CamelModel):
    recipes: List[Recipe] = Field(default_factory=list)


class RecipePage(CamelModel):
    data: List[Recipe]
    page: int
    page_size: int
    total: int


class RecipeValidationError(ValueError):
    """Request body is missing something a recipe cannot exist without."""
