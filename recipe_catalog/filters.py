# Plain substring and exact-tag matching; no stemming or fuzzy search.

from typing import Iterable, List, Sequence, Tuple, TypeVar

from .schemas import Recipe

T = TypeVar("T")


def matches_search(recipe: Recipe, search: str) -> bool:
    """Return True if ``search`` occurs in the name, instructions, any
    ingredient or any tag of the recipe, ignoring case.

    The whole string is one term: ``"tomato soup"`` is not split into words.
    """
    term = search.lower()
    if term in recipe.name.lower() or term in recipe.instructions.lower():
        return True
    if any(term in ingredient.lower() for ingredient in recipe.ingredients):
        return True
    return any(term in tag.lower() for tag in recipe.tags)


def matches_tags(recipe: Recipe, tags: Iterable[str]) -> bool:
    wanted = {t.lower() for t in tags}
    return any(tag.lower() in wanted for tag in recipe.tags)


def paginate(items: Sequence[T], page: int, page_size: int) -> Tuple[List[T], int, int]:
    """Slice one page out of ``items``.

    ``page`` and ``page_size`` below 1 are clamped to 1. Returns the page
    and the clamped values.
    """
    page = max(1, page)
    page_size = max(1, page_size)
    start = (page - 1) * page_size
    return list(items[start:start + page_size]), page, page_size
