from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Path, Request

from .config import DEFAULT_APP_CONFIG
from .context import AppContext, build_context
from .models import (
    FilterKeyRequest,
    FilterRequest,
    LocationRequest,
    LocationResponse,
    MadeTodayResponse,
    RatingRequest,
    RecipeDetailResponse,
    RecipeListResponse,
    SearchRequest,
    ShareLinkResponse,
    SortRequest,
    StepResponse,
    TagResponse,
)
from .ranking.filtering import SortOrder

logger = logging.getLogger(__name__)

router = APIRouter()


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _require_recipe(ctx: AppContext, recipe_id: str) -> None:
    if ctx.catalog.find_by_id(recipe_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown recipe: {recipe_id}")


def _list_response(ctx: AppContext) -> RecipeListResponse:
    return RecipeListResponse(
        ids=ctx.rendered_ids,
        total=len(ctx.rendered_ids),
        sort_order=ctx.filters.sort_order,
        active_filters=list(ctx.filters.active_filters.items()),
        search=ctx.filters.search_query,
        open_recipe_id=ctx.viewer.current_recipe_id,
    )


def _location_response(ctx: AppContext) -> LocationResponse:
    return LocationResponse(
        location=ctx.history.location,
        share_url=ctx.sync.get_shareable_url(),
        mode=ctx.sync.mode.value,
        can_go_back=ctx.history.can_go_back(),
        can_go_forward=ctx.history.can_go_forward(),
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/metadata")
async def metadata(ctx: AppContext = Depends(get_context)) -> dict:
    return {
        "language": ctx.language,
        "default_language": ctx.config.default_language,
        "supported_languages": list(ctx.config.supported_languages),
        "filters": ctx.catalog.get_filters(),
        "sort_orders": [order.value for order in SortOrder],
    }


@router.get("/ui-text")
async def ui_text(ctx: AppContext = Depends(get_context)) -> dict:
    return ctx.catalog.ui_text


# ── Listing ──────────────────────────────────────────────────────────────


@router.get("/recipes", response_model=RecipeListResponse)
async def list_recipes(ctx: AppContext = Depends(get_context)) -> RecipeListResponse:
    ctx.filters.apply_filters()
    return _list_response(ctx)


@router.get("/recipes/{recipe_id}", response_model=RecipeDetailResponse)
async def recipe_detail(
    recipe_id: str, ctx: AppContext = Depends(get_context)
) -> RecipeDetailResponse:
    recipe = ctx.catalog.find_by_id(recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail=f"Unknown recipe: {recipe_id}")
    return RecipeDetailResponse(
        recipe=ctx.engagement.get_recipe_with_user_data(recipe),
        score=ctx.recommendations.get_score(recipe_id),
    )


@router.post("/sort", response_model=RecipeListResponse)
async def change_sort(body: SortRequest, ctx: AppContext = Depends(get_context)) -> RecipeListResponse:
    ctx.filters.change_sort_order(body.order)
    return _list_response(ctx)


@router.post("/filters", response_model=RecipeListResponse)
async def activate_filter(
    body: FilterRequest, ctx: AppContext = Depends(get_context)
) -> RecipeListResponse:
    ctx.activate_filter(body.dimension, body.value)
    return _list_response(ctx)


@router.post("/filters/toggle", response_model=RecipeListResponse)
async def toggle_filter(
    body: FilterKeyRequest, ctx: AppContext = Depends(get_context)
) -> RecipeListResponse:
    ctx.filters.toggle_filter(body.key)
    return _list_response(ctx)


@router.delete("/filters/{key}", response_model=RecipeListResponse)
async def remove_filter(key: str, ctx: AppContext = Depends(get_context)) -> RecipeListResponse:
    ctx.filters.remove_filter(key)
    return _list_response(ctx)


@router.delete("/filters", response_model=RecipeListResponse)
async def clear_filters(ctx: AppContext = Depends(get_context)) -> RecipeListResponse:
    ctx.filters.clear_all_filters()
    return _list_response(ctx)


@router.post("/search", response_model=RecipeListResponse)
async def search(body: SearchRequest, ctx: AppContext = Depends(get_context)) -> RecipeListResponse:
    ctx.filters.set_search(body.query)
    return _list_response(ctx)


@router.delete("/search", response_model=RecipeListResponse)
async def clear_search(ctx: AppContext = Depends(get_context)) -> RecipeListResponse:
    ctx.filters.clear_search()
    return _list_response(ctx)


# ── Recipe view & engagement ─────────────────────────────────────────────


@router.post("/recipes/{recipe_id}/open", response_model=RecipeListResponse)
async def open_recipe(recipe_id: str, ctx: AppContext = Depends(get_context)) -> RecipeListResponse:
    if not ctx.viewer.show_recipe(recipe_id):
        raise HTTPException(status_code=404, detail=f"Unknown recipe: {recipe_id}")
    return _list_response(ctx)


@router.post("/recipe/close", response_model=RecipeListResponse)
async def close_recipe(ctx: AppContext = Depends(get_context)) -> RecipeListResponse:
    ctx.viewer.close_recipe()
    return _list_response(ctx)


@router.put("/recipes/{recipe_id}/rating")
async def rate_recipe(
    recipe_id: str, body: RatingRequest, ctx: AppContext = Depends(get_context)
) -> dict:
    _require_recipe(ctx, recipe_id)
    ctx.viewer.rate_recipe(recipe_id, body.rating)
    return {"recipe_id": recipe_id, "rating": body.rating}


@router.delete("/recipes/{recipe_id}/rating")
async def clear_rating(recipe_id: str, ctx: AppContext = Depends(get_context)) -> dict:
    _require_recipe(ctx, recipe_id)
    ctx.viewer.clear_rating(recipe_id)
    return {"recipe_id": recipe_id, "rating": None}


@router.post("/recipes/{recipe_id}/tag", response_model=TagResponse)
async def toggle_tag(recipe_id: str, ctx: AppContext = Depends(get_context)) -> TagResponse:
    _require_recipe(ctx, recipe_id)
    return TagResponse(recipe_id=recipe_id, tagged=ctx.viewer.toggle_tag(recipe_id))


@router.post("/recipes/{recipe_id}/made-today", response_model=MadeTodayResponse)
async def toggle_made_today(
    recipe_id: str, ctx: AppContext = Depends(get_context)
) -> MadeTodayResponse:
    _require_recipe(ctx, recipe_id)
    result = ctx.viewer.toggle_made_today(recipe_id)
    return MadeTodayResponse(
        recipe_id=recipe_id, made_today=result.made_today, made_count=result.made_count
    )


@router.post("/recipes/{recipe_id}/steps/{step_index}", response_model=StepResponse)
async def toggle_step(
    recipe_id: str,
    step_index: int = Path(..., ge=0),
    ctx: AppContext = Depends(get_context),
) -> StepResponse:
    _require_recipe(ctx, recipe_id)
    state = ctx.viewer.toggle_instruction_step(recipe_id, step_index)
    return StepResponse(recipe_id=recipe_id, step_index=step_index, state=state)


@router.get("/recipes/{recipe_id}/share", response_model=ShareLinkResponse)
async def share_recipe(recipe_id: str, ctx: AppContext = Depends(get_context)) -> ShareLinkResponse:
    _require_recipe(ctx, recipe_id)
    return ShareLinkResponse(url=ctx.sync.get_recipe_url(recipe_id))


# ── Navigation ───────────────────────────────────────────────────────────


@router.get("/location", response_model=LocationResponse)
async def location(ctx: AppContext = Depends(get_context)) -> LocationResponse:
    return _location_response(ctx)


@router.post("/location", response_model=LocationResponse)
async def load_location(
    body: LocationRequest, ctx: AppContext = Depends(get_context)
) -> LocationResponse:
    ctx.sync.initialize_from_location(body.location)
    return _location_response(ctx)


@router.post("/navigation/back", response_model=LocationResponse)
async def back(ctx: AppContext = Depends(get_context)) -> LocationResponse:
    ctx.history.back()
    return _location_response(ctx)


@router.post("/navigation/forward", response_model=LocationResponse)
async def forward(ctx: AppContext = Depends(get_context)) -> LocationResponse:
    ctx.history.forward()
    return _location_response(ctx)


def create_app(context: AppContext | None = None) -> FastAPI:
    """
    Build the HTTP surface over one engine context.

    Without an explicit *context* the lifespan builds one from the default
    configuration on the running event loop.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.context is None:
            app.state.context = build_context(DEFAULT_APP_CONFIG)
        yield

    app = FastAPI(title="Cookbook Discovery API", version="1.0.0", lifespan=lifespan)
    app.state.context = context
    app.include_router(router)
    return app


app = create_app()
