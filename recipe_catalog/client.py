from typing import Optional, Sequence

import httpx
import structlog

from . import schemas

logger = structlog.get_logger(__name__)


class RecipeClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecipeClient:
    """Client for the recipe catalog HTTP API.

    Pass ``http`` to reuse an existing ``httpx.Client`` (FastAPI's
    ``TestClient`` works too); otherwise one is created for ``base_url``.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self.http = http if http is not None else httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_http = http is None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def _request(self, action: str, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self.http.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("recipe api returned error", action=action, status=status)
            raise RecipeClientError(f"Failed to {action}: {status}", status) from e
        except httpx.RequestError as e:
            logger.error("recipe api request failed", action=action, error=str(e))
            raise RecipeClientError(f"Failed to {action}: {e}") from e
        return response

    def list_recipes(
        self,
        page: int = 1,
        page_size: int = 10,
        search: str = "",
        tags: Sequence[str] = (),
    ) -> schemas.RecipePage:
        params = {"page": page, "pageSize": page_size}
        if search:
            params["search"] = search
        if tags:
            params["tags"] = ",".join(tags)
        response = self._request("fetch recipes", "GET", "/recipes", params=params)
        return schemas.RecipePage.model_validate(response.json())

    def get_recipe(self, recipe_id: str) -> Optional[schemas.Recipe]:
        try:
            response = self._request("fetch recipe", "GET", f"/recipes/{recipe_id}")
        except RecipeClientError as e:
            if e.status_code == 404:
                return None
            raise
        return schemas.Recipe.model_validate(response.json())

    def create_recipe(self, recipe: schemas.RecipeCreate) -> schemas.Recipe:
        response = self._request(
            "create recipe",
            "POST",
            "/recipes",
            json=recipe.model_dump(by_alias=True, exclude_none=True),
        )
        return schemas.Recipe.model_validate(response.json())

    def update_recipe(
        self, recipe_id: str, changes: schemas.RecipeUpdate
    ) -> Optional[schemas.Recipe]:
        try:
            response = self._request(
                "update recipe",
                "PATCH",
                f"/recipes/{recipe_id}",
                json=changes.model_dump(by_alias=True, exclude_unset=True, exclude_none=True),
            )
        except RecipeClientError as e:
            if e.status_code == 404:
                return None
            raise
        return schemas.Recipe.model_validate(response.json())

    def delete_recipe(self, recipe_id: str) -> bool:
        try:
            self._request("delete recipe", "DELETE", f"/recipes/{recipe_id}")
        except RecipeClientError as e:
            if e.status_code == 404:
                return False
            raise
        return True
