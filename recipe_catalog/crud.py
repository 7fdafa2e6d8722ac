import uuid
from typing import Iterable, List, Optional, Sequence, Tuple

import structlog
from pydantic import ValidationError

from . import schemas
from .filters import matches_search, matches_tags, paginate
from .store import RecipeStore

logger = structlog.get_logger(__name__)


def _new_id(existing: Iterable[str]) -> str:
    taken = set(existing)
    while True:
        recipe_id = str(uuid.uuid4())
        if recipe_id not in taken:
            return recipe_id


def filter_recipes(
    recipes: Sequence[schemas.Recipe], search: str = "", tags: Sequence[str] = ()
) -> List[schemas.Recipe]:
    filtered = list(recipes)
    if search:
        filtered = [r for r in filtered if matches_search(r, search)]
    if tags:
        filtered = [r for r in filtered if matches_tags(r, tags)]
    return filtered


def list_recipes(
    store: RecipeStore,
    page: int = 1,
    page_size: int = 10,
    search: str = "",
    tags: Sequence[str] = (),
) -> Tuple[List[schemas.Recipe], int]:
    """Return one page of matching recipes and the number of matches."""
    recipes = filter_recipes(store.read().recipes, search, tags)
    data, _, _ = paginate(recipes, page, page_size)
    return data, len(recipes)


def get_recipe(store: RecipeStore, recipe_id: str) -> Optional[schemas.Recipe]:
    return next((r for r in store.read().recipes if r.id == recipe_id), None)


def create_recipe(store: RecipeStore, recipe: schemas.RecipeCreate) -> schemas.Recipe:
    with store.transaction() as tx:
        db_recipe = schemas.Recipe(
            id=_new_id(r.id for r in tx.collection.recipes),
            **recipe.with_defaults().model_dump(),
        )
        tx.collection.recipes.append(db_recipe)
        tx.mark_dirty()
    logger.info("recipe created", recipe_id=db_recipe.id, persisted=tx.written)
    return db_recipe


def update_recipe(
    store: RecipeStore, recipe_id: str, recipe: schemas.RecipeUpdate
) -> Optional[schemas.Recipe]:
    with store.transaction() as tx:
        recipes = tx.collection.recipes
        index = next((i for i, r in enumerate(recipes) if r.id == recipe_id), None)
        if index is None:
            return None
        merged = recipes[index].model_dump()
        merged.update(recipe.changes())
        merged["id"] = recipe_id
        db_recipe = schemas.Recipe(**merged)
        recipes[index] = db_recipe
        tx.mark_dirty()
    logger.info("recipe updated", recipe_id=recipe_id, persisted=tx.written)
    return db_recipe


def delete_recipe(store: RecipeStore, recipe_id: str) -> bool:
    with store.transaction() as tx:
        recipes = tx.collection.recipes
        index = next((i for i, r in enumerate(recipes) if r.id == recipe_id), None)
        if index is None:
            return False
        del recipes[index]
        tx.mark_dirty()
    logger.info("recipe deleted", recipe_id=recipe_id, persisted=tx.written)
    return True


def import_recipes(store: RecipeStore, items: Iterable[dict]) -> int:
    """Add every item with a name and instructions whose name is new.

    Names are compared case-insensitively. The file is written once.
    """
    added = 0
    with store.transaction() as tx:
        names = {r.name.lower() for r in tx.collection.recipes}
        for item in items:
            try:
                recipe = schemas.RecipeCreate.model_validate(item)
            except ValidationError as e:
                logger.warning("skipping invalid recipe", name=item.get("name"), error=str(e))
                continue
            if not recipe.has_required_fields() or recipe.name.lower() in names:
                continue
            tx.collection.recipes.append(
                schemas.Recipe(
                    id=_new_id(r.id for r in tx.collection.recipes),
                    **recipe.with_defaults().model_dump(),
                )
            )
            names.add(recipe.name.lower())
            added += 1
        if added:
            tx.mark_dirty()
    return added
