import math
import time
from contextlib import asynccontextmanager
from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import crud, schemas
from .config import Settings, get_settings
from .log import configure_logging
from .store import RecipeStore, StoreStatus

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    logger.info("recipe catalog starting", data_file=str(settings.data_file))
    yield


settings = get_settings()
app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

# Allow CORS for API clients (adjust origins for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store(settings: Settings = Depends(get_settings)) -> RecipeStore:
    return RecipeStore(settings.data_file)


def simulate_latency(settings: Settings = Depends(get_settings)) -> None:
    if settings.simulated_latency_ms:
        time.sleep(settings.simulated_latency_ms / 1000)


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


@app.exception_handler(schemas.RecipeValidationError)
async def recipe_validation_error(request: Request, exc: schemas.RecipeValidationError):
    return error_response(str(exc), 400)


# Body could not be decoded at all; answered like any other failure of the route.
BODY_FAILURES = {
    "POST": "Failed to create recipe",
    "PATCH": "Failed to update recipe",
}


def _undecodable_body(error: dict) -> bool:
    if error.get("type") == "json_invalid":
        return True
    return error.get("type") == "missing" and tuple(error.get("loc", ())) == ("body",)


@app.exception_handler(RequestValidationError)
async def request_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = BODY_FAILURES.get(request.method)
    if message and any(_undecodable_body(e) for e in errors):
        logger.warning("undecodable request body", path=request.url.path)
        return error_response(message, 500)
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "request"
    return error_response(f"Invalid {field}: {first.get('msg', 'invalid value')}", 400)


def parse_tags(tags: Optional[str]) -> List[str]:
    """Split a comma separated ``tags`` parameter, dropping blank entries."""
    if not tags:
        return []
    return [t.strip() for t in tags.split(",") if t.strip()]


def pagination_links(request: Request, page: int, page_size: int, total: int) -> str:
    last = max(1, math.ceil(total / page_size))
    rels = [("first", 1)]
    if page > 1:
        rels.append(("prev", min(page - 1, last)))
    if page < last:
        rels.append(("next", page + 1))
    rels.append(("last", last))
    links = []
    for rel, target in rels:
        url = request.url.include_query_params(page=target, pageSize=page_size)
        links.append(f'<{url}>; rel="{rel}"')
    return ", ".join(links)


@app.get("/health")
def health(store: RecipeStore = Depends(get_store)):
    result = store.read_result()
    body = {
        "status": "healthy",
        "store": result.status.value,
        "recipes": len(result.collection.recipes),
    }
    if result.status is StoreStatus.unreadable:
        body["status"] = "unhealthy"
        return JSONResponse(content=body, status_code=503)
    return body


@app.get(
    "/recipes",
    response_model=schemas.RecipePage,
    dependencies=[Depends(simulate_latency)],
)
def read_recipes(
    request: Request,
    response: Response,
    page: int = 1,
    page_size: Optional[int] = Query(None, alias="pageSize"),
    search: str = "",
    tags: Optional[str] = None,
    store: RecipeStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    page = max(1, page)
    if page_size is None:
        page_size = settings.default_page_size
    page_size = max(1, page_size)
    try:
        data, total = crud.list_recipes(store, page, page_size, search, parse_tags(tags))
    except Exception:
        logger.exception("error fetching recipes")
        return error_response("Failed to fetch recipes", 500)
    response.headers["Link"] = pagination_links(request, page, page_size, total)
    return schemas.RecipePage(data=data, page=page, page_size=page_size, total=total)


@app.post(
    "/recipes",
    response_model=schemas.Recipe,
    status_code=201,
    dependencies=[Depends(simulate_latency)],
)
def create_recipe(body: schemas.RecipeCreate, store: RecipeStore = Depends(get_store)):
    if not body.has_required_fields():
        raise schemas.RecipeValidationError("Name and instructions are required")
    try:
        return crud.create_recipe(store, body)
    except Exception:
        logger.exception("error creating recipe")
        return error_response("Failed to create recipe", 500)


@app.get(
    "/recipes/{recipe_id}",
    response_model=schemas.Recipe,
    dependencies=[Depends(simulate_latency)],
)
def read_recipe(recipe_id: str, store: RecipeStore = Depends(get_store)):
    try:
        r = crud.get_recipe(store, recipe_id)
    except Exception:
        logger.exception("error fetching recipe", recipe_id=recipe_id)
        return error_response("Failed to fetch recipe", 500)
    if not r:
        return error_response("Recipe not found", 404)
    return r


@app.patch(
    "/recipes/{recipe_id}",
    response_model=schemas.Recipe,
    dependencies=[Depends(simulate_latency)],
)
def update_recipe(
    recipe_id: str, body: schemas.RecipeUpdate, store: RecipeStore = Depends(get_store)
):
    try:
        r = crud.update_recipe(store, recipe_id, body)
    except Exception:
        logger.exception("error updating recipe", recipe_id=recipe_id)
        return error_response("Failed to update recipe", 500)
    if not r:
        return error_response("Recipe not found", 404)
    return r


@app.delete("/recipes/{recipe_id}", dependencies=[Depends(simulate_latency)])
def delete_recipe(recipe_id: str, store: RecipeStore = Depends(get_store)):
    try:
        deleted = crud.delete_recipe(store, recipe_id)
    except Exception:
        logger.exception("error deleting recipe", recipe_id=recipe_id)
        return error_response("Failed to delete recipe", 500)
    if not deleted:
        return error_response("Recipe not found", 404)
    return {"deleted": True}


def serve():
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    serve()
