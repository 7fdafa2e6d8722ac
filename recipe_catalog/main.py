from .config import get_settings
from .store import RecipeStore


def main():
    settings = get_settings()
    result = RecipeStore(settings.data_file).read_result()
    recipes = result.collection.recipes
    print(f"Loaded {len(recipes)} recipe(s) from {settings.data_file} ({result.status.value}).")
    for r in recipes:
        print(f"- {r.name}")


if __name__ == "__main__":
    main()
