"""
MovieSearch — FastAPI Application

HTTP surface for a front end: search session, detail navigation,
accounts and favorites. Every endpoint is a thin caller of the
components held by the AppContext.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from moviesearch.config import settings
from moviesearch.context import AppContext, build_context
from moviesearch.errors import (
    CatalogUnavailable,
    DetailNotFound,
    DuplicateEmail,
    InvalidCredentials,
    NotAuthenticated,
    SearchUnavailable,
)
from moviesearch.models import (
    DetailRouteResponse,
    FavoritesResponse,
    FavoriteToggleResponse,
    GlobalSearchRequest,
    LoginRequest,
    Movie,
    MovieDetailResponse,
    PageRequest,
    RegisterRequest,
    SearchRequest,
    SearchStateResponse,
    SortRequest,
    UserIdentity,
    YearFilterRequest,
)
from moviesearch.navigation import SearchCommand
from moviesearch.search import page_window, year_options

logger = logging.getLogger(__name__)


# ── Lifespan: startup/shutdown ────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the application context unless one was injected."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    )
    logger.info("🎬 MovieSearch starting up…")
    logger.info("   Catalog: %s", settings.catalog_provider)

    if getattr(app.state, "context", None) is None:
        app.state.context = build_context(settings)
    ctx: AppContext = app.state.context
    if ctx.identity.current:
        logger.info("   Signed in as %s", ctx.identity.current.id)

    yield  # app runs here

    logger.info("🎬 MovieSearch shutting down…")
    await ctx.aclose()


# ── App instance ──────────────────────────────────────────

app = FastAPI(
    title="MovieSearch",
    version="1.0.0",
    description="Movie catalog search with personal favorites",
    lifespan=lifespan,
)

# CORS for frontend dev
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    t0 = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - t0) * 1000
    logger.info(
        "%s %s → %d (%.0f ms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    return response


def get_context(request: Request) -> AppContext:
    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise HTTPException(status_code=503, detail="Application is not initialised")
    return ctx


def _require_user(ctx: AppContext) -> UserIdentity:
    user = ctx.identity.current
    if user is None:
        raise HTTPException(status_code=401, detail=str(NotAuthenticated()))
    return user


def _state_response(ctx: AppContext, *, restored: bool = False) -> SearchStateResponse:
    state = ctx.session.state
    return SearchStateResponse(
        state=state,
        pagination=page_window(state.page, state.total_pages),
        is_loading=ctx.session.is_loading,
        error=ctx.session.error,
        restored=restored,
    )


# ── Health endpoint ───────────────────────────────────────


@app.get("/api/health")
async def health(ctx: AppContext = Depends(get_context)):
    return {
        "status": "ok",
        "catalog": settings.catalog_provider,
        "authenticated": ctx.identity.is_authenticated,
    }


# ── Search session ───────────────────────────────────────


@app.get("/api/search", response_model=SearchStateResponse)
async def get_search_state(ctx: AppContext = Depends(get_context)):
    return _state_response(ctx)


@app.post("/api/search", response_model=SearchStateResponse)
async def search(body: SearchRequest, ctx: AppContext = Depends(get_context)):
    """Search box submit, or a page change when `page` > 1."""
    if not body.query.strip():
        raise HTTPException(status_code=422, detail="Query must not be empty")
    try:
        await ctx.session.search(body.query, body.page)
    except SearchUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return _state_response(ctx)


@app.post("/api/search/global", response_model=SearchStateResponse)
async def global_search(body: GlobalSearchRequest, ctx: AppContext = Depends(get_context)):
    """Header search bar. An empty query clears the session."""
    try:
        await ctx.bridge.dispatch(SearchCommand(query=body.query))
    except SearchUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return _state_response(ctx)


@app.put("/api/search/sort", response_model=SearchStateResponse)
async def set_sort(body: SortRequest, ctx: AppContext = Depends(get_context)):
    try:
        await ctx.session.set_sort(body.sort)
    except SearchUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return _state_response(ctx)


@app.put("/api/search/year", response_model=SearchStateResponse)
async def set_year(body: YearFilterRequest, ctx: AppContext = Depends(get_context)):
    try:
        await ctx.session.set_year_filter(body.year)
    except SearchUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return _state_response(ctx)


@app.delete("/api/search/filters", response_model=SearchStateResponse)
async def clear_filters(ctx: AppContext = Depends(get_context)):
    try:
        await ctx.session.clear_filters()
    except SearchUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return _state_response(ctx)


@app.post("/api/search/page", response_model=SearchStateResponse)
async def change_page(body: PageRequest, ctx: AppContext = Depends(get_context)):
    state = ctx.session.state
    if not state.has_searched or body.page > max(state.total_pages, 1):
        raise HTTPException(status_code=422, detail="Page out of range")
    try:
        await ctx.session.change_page(body.page)
    except SearchUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return _state_response(ctx)


@app.post("/api/home", response_model=SearchStateResponse)
async def go_home(ctx: AppContext = Depends(get_context)):
    await ctx.bridge.go_home()
    return _state_response(ctx)


@app.post("/api/search/clear", response_model=SearchStateResponse)
async def clear_search(ctx: AppContext = Depends(get_context)):
    """Empty the results without a catalog call; sort and year stay."""
    ctx.session.clear()
    return _state_response(ctx)


@app.get("/api/search/years", response_model=List[int])
async def get_year_options():
    return year_options()


# ── Detail navigation ────────────────────────────────────


@app.post("/api/movies/{movie_id}/open", response_model=DetailRouteResponse)
async def open_detail(movie_id: str, ctx: AppContext = Depends(get_context)):
    """Leave the results view; the returned token brings it back."""
    route = ctx.bridge.open_detail(movie_id)
    return DetailRouteResponse(movie_id=route.movie_id, snapshot_token=route.snapshot_token)


@app.get("/api/movies/{movie_id}", response_model=MovieDetailResponse)
async def movie_detail(
    movie_id: str,
    snapshot: Optional[str] = None,
    ctx: AppContext = Depends(get_context),
):
    try:
        movie = await ctx.catalog.get_movie_detail(movie_id)
    except DetailNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except CatalogUnavailable as exc:
        logger.warning("Detail fetch for %s failed: %s", movie_id, exc)
        raise HTTPException(status_code=503, detail="Failed to load movie details")
    return MovieDetailResponse(
        movie=movie,
        is_favorite=ctx.favorites.is_favorite(movie.id),
        snapshot_token=snapshot if ctx.bridge.has_snapshot(snapshot) else None,
    )


@app.post("/api/search/restore/{token}", response_model=SearchStateResponse)
async def return_to_results(token: str, ctx: AppContext = Depends(get_context)):
    """Back to search. An unknown or used token lands on empty results."""
    restored = ctx.bridge.return_to_results(token)
    return _state_response(ctx, restored=restored)


# ── Accounts ─────────────────────────────────────────────


@app.post("/api/auth/register", response_model=UserIdentity)
async def register(body: RegisterRequest, ctx: AppContext = Depends(get_context)):
    try:
        return ctx.identity.register(body.name, body.email, body.password)
    except DuplicateEmail as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@app.post("/api/auth/login", response_model=UserIdentity)
async def login(body: LoginRequest, ctx: AppContext = Depends(get_context)):
    try:
        return ctx.identity.login(body.email, body.password)
    except InvalidCredentials as exc:
        raise HTTPException(status_code=401, detail=str(exc))


@app.post("/api/auth/logout")
async def logout(ctx: AppContext = Depends(get_context)):
    ctx.identity.logout()
    return {"status": "logged_out"}


@app.get("/api/auth/me", response_model=UserIdentity)
async def me(ctx: AppContext = Depends(get_context)):
    return _require_user(ctx)


# ── Favorites ────────────────────────────────────────────


@app.get("/api/favorites", response_model=FavoritesResponse)
async def list_favorites(ctx: AppContext = Depends(get_context)):
    user = _require_user(ctx)
    favorites = ctx.favorites.list()
    return FavoritesResponse(user=user, favorites=favorites, count=len(favorites))


@app.post("/api/favorites", response_model=FavoriteToggleResponse)
async def add_favorite(movie: Movie, ctx: AppContext = Depends(get_context)):
    _require_user(ctx)
    changed = ctx.favorites.add(movie)
    return FavoriteToggleResponse(movie_id=movie.id, changed=changed, is_favorite=True)


@app.delete("/api/favorites/{movie_id}", response_model=FavoriteToggleResponse)
async def remove_favorite(movie_id: str, ctx: AppContext = Depends(get_context)):
    _require_user(ctx)
    was_favorite = ctx.favorites.is_favorite(movie_id)
    ctx.favorites.remove(movie_id)
    return FavoriteToggleResponse(movie_id=movie_id, changed=was_favorite, is_favorite=False)


@app.get("/api/favorites/{movie_id}", response_model=FavoriteToggleResponse)
async def check_favorite(movie_id: str, ctx: AppContext = Depends(get_context)):
    return FavoriteToggleResponse(
        movie_id=movie_id,
        changed=False,
        is_favorite=ctx.favorites.is_favorite(movie_id),
    )
