# flake8: noqa
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import json
import threading

import pytest

from recipe_catalog import crud, schemas
from recipe_catalog.filters import matches_search, matches_tags, paginate
from recipe_catalog.store import RecipeStore


def make_recipe(id, name, tags=(), ingredients=(), instructions="Cook it"):
    return {
        "id": id,
        "name": name,
        "instructions": instructions,
        "prepTimeMinutes": 1,
        "cookTimeMinutes": 2,
        "servings": 2,
        "ingredients": list(ingredients),
        "tags": list(tags),
    }


CATALOG = [
    make_recipe("a", "Apple Pie", ["dessert", "Baking"], ["apple", "flour"], "Bake for 40 minutes"),
    make_recipe("b", "Banana Bread", ["baking"], ["banana", "flour"], "Mash and bake"),
    make_recipe("c", "Cherry Tart", ["dessert"], ["cherry"], "Chill then serve"),
    make_recipe("d", "Tomato Soup", ["soup", "vegan"], ["tomato", "onion"], "Simmer and blend"),
    make_recipe("e", "Onion Rings", [], ["onion", "batter"], "Deep fry"),
]


@pytest.fixture
def store(tmp_path):
    path = tmp_path / "recipes.json"
    path.write_text(json.dumps({"recipes": CATALOG}), encoding="utf-8")
    return RecipeStore(path)


@pytest.fixture
def empty_store(tmp_path):
    return RecipeStore(tmp_path / "missing" / "recipes.json")


def test_list_empty_collection(empty_store):
    data, total = crud.list_recipes(empty_store, 1, 10, "", [])
    assert data == []
    assert total == 0


@pytest.mark.parametrize("term", ["apple", "BAKE", "onion", "dessert", "x", "chill then"])
def test_search_includes_exactly_the_matching_recipes(store, term):
    data, total = crud.list_recipes(store, 1, 100, term)
    everything = store.read().recipes
    found = {r.id for r in data}
    lowered = term.lower()
    for r in everything:
        fields = [r.name, r.instructions] + r.ingredients + r.tags
        assert (r.id in found) == any(lowered in f.lower() for f in fields)
    assert total == len(found)


def test_search_is_one_term_not_tokenized(store):
    # "apple soup" is not a substring of anything even though both words are
    data, total = crud.list_recipes(store, search="apple soup")
    assert total == 0


def test_tag_filter_is_intersection(store):
    data, _ = crud.list_recipes(store, tags=["DESSERT", "vegan"])
    assert [r.id for r in data] == ["a", "c", "d"]

    data, _ = crud.list_recipes(store, tags=["baking"])
    assert [r.id for r in data] == ["a", "b"]


def test_filters_compose_with_and(store):
    data, total = crud.list_recipes(store, search="flour", tags=["dessert"])
    assert [r.id for r in data] == ["a"]
    assert total == 1


def test_two_recipe_tag_scenario(tmp_path):
    path = tmp_path / "recipes.json"
    path.write_text(
        json.dumps({"recipes": [
            make_recipe("1", "Test Recipe 1", ["tag1", "tag2"]),
            make_recipe("2", "Test Recipe 2", ["tag2", "tag3"]),
        ]}),
        encoding="utf-8",
    )
    data, total = crud.list_recipes(RecipeStore(path), 1, 10, "", ["tag3"])
    assert [r.name for r in data] == ["Test Recipe 2"]
    assert total == 1


@pytest.mark.parametrize("page,page_size", [(1, 2), (2, 2), (3, 2), (4, 2), (1, 10), (2, 3)])
def test_total_is_independent_of_pagination(store, page, page_size):
    data, total = crud.list_recipes(store, page, page_size)
    assert total == len(CATALOG)
    assert len(data) <= page_size
    if (page - 1) * page_size >= total:
        assert data == []
    else:
        expected = [r["id"] for r in CATALOG][(page - 1) * page_size:page * page_size]
        assert [r.id for r in data] == expected


def test_paginate_clamps_to_one():
    items = list(range(5))
    assert paginate(items, 0, 2) == ([0, 1], 1, 2)
    assert paginate(items, -4, 0) == ([0], 1, 1)


def test_matchers():
    r = schemas.Recipe.model_validate(CATALOG[0])
    assert matches_search(r, "PIE")
    assert matches_search(r, "lou")
    assert not matches_search(r, "cherry")
    assert matches_tags(r, ["baking"])
    assert not matches_tags(r, ["bak"])
    assert not matches_tags(r, [])


def test_create_then_list_round_trip(store):
    new = schemas.RecipeCreate(
        name="New Recipe",
        instructions="New instructions",
        prep_time_minutes=5,
        cook_time_minutes=10,
        servings=2,
        ingredients=["new ingredient"],
        tags=["new tag"],
    )
    created = crud.create_recipe(store, new)
    assert created.id
    assert created.id not in {r["id"] for r in CATALOG}

    data, total = crud.list_recipes(store, 1, 100)
    assert total == len(CATALOG) + 1
    found = next(r for r in data if r.id == created.id)
    assert found.model_dump(exclude={"id"}) == new.model_dump()


def test_create_in_missing_file_creates_it(empty_store):
    created = crud.create_recipe(empty_store, schemas.RecipeCreate(name="Toast", instructions="Toast"))
    assert empty_store.path.exists()
    assert created.servings == 1
    assert created.ingredients == []
    assert crud.get_recipe(empty_store, created.id) == created


def test_ids_are_unique(empty_store):
    ids = {
        crud.create_recipe(empty_store, schemas.RecipeCreate(name=f"R{i}", instructions="x")).id
        for i in range(20)
    }
    assert len(ids) == 20


def test_concurrent_creates_are_not_lost(empty_store):
    def worker(i):
        crud.create_recipe(
            RecipeStore(empty_store.path), schemas.RecipeCreate(name=f"R{i}", instructions="x")
        )

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    _, total = crud.list_recipes(empty_store)
    assert total == 10


def test_update_merges_fields(store):
    updated = crud.update_recipe(store, "a", schemas.RecipeUpdate(name="Updated Recipe Name"))
    assert updated is not None
    assert updated.id == "a"
    assert updated.name == "Updated Recipe Name"
    assert updated.ingredients == ["apple", "flour"]

    assert crud.get_recipe(store, "a") == updated


def test_update_ignores_unset_and_null_fields(store):
    changes = schemas.RecipeUpdate.model_validate({"servings": 8, "tags": None})
    updated = crud.update_recipe(store, "b", changes)
    assert updated.servings == 8
    assert updated.tags == ["baking"]


def test_update_missing_recipe_does_not_write(store):
    before = store.path.read_text(encoding="utf-8")
    assert crud.update_recipe(store, "missing-id", schemas.RecipeUpdate(name="x")) is None
    assert store.path.read_text(encoding="utf-8") == before


def test_delete_recipe(store):
    assert crud.delete_recipe(store, "a") is True
    data, total = crud.list_recipes(store, 1, 100)
    assert "a" not in {r.id for r in data}
    assert total == len(CATALOG) - 1


def test_delete_missing_recipe(store):
    before = store.path.read_text(encoding="utf-8")
    assert crud.delete_recipe(store, "missing-id") is False
    assert store.path.read_text(encoding="utf-8") == before


def test_get_recipe(store):
    assert crud.get_recipe(store, "c").name == "Cherry Tart"
    assert crud.get_recipe(store, "zzz") is None


def test_import_recipes_skips_duplicates_and_incomplete(store):
    items = [
        {"name": "apple pie", "instructions": "dup by name"},
        {"name": "Pea Soup", "instructions": "Simmer peas", "tags": ["soup"]},
        {"name": "Pea Soup", "instructions": "second copy"},
        {"name": "No Steps"},
        {"instructions": "No name"},
        {"name": "Bad", "instructions": "x", "servings": "lots"},
    ]
    assert crud.import_recipes(store, items) == 1

    data, total = crud.list_recipes(store, search="pea soup")
    assert total == 1
    assert data[0].tags == ["soup"]
    assert data[0].servings == 1


def test_import_nothing_does_not_write(store):
    before = store.path.read_text(encoding="utf-8")
    assert crud.import_recipes(store, [{"name": "Apple Pie", "instructions": "again"}]) == 0
    assert store.path.read_text(encoding="utf-8") == before
