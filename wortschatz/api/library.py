"""FastAPI router exposing the favorites library and its categories."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from wortschatz.api.dependencies import get_current_user_id
from wortschatz.schemas.library import (
    Category,
    CategoryListResponse,
    CategoryNamePayload,
    CategoryReorderRequest,
    FavoriteAddRequest,
    FavoriteRemoveRequest,
    LibraryPage,
    OkResponse,
    RemoveResponse,
)
from wortschatz.services.library_service import (
    CategoryConflictError,
    LibraryService,
    get_library_service,
)

router = APIRouter()


@router.get("", response_model=LibraryPage)
async def list_library(
    limit: int | None = Query(None, description="Page size, clamped to 1..200"),
    cursor: str | None = Query(None, description="Cursor returned by the previous page"),
    category_id: int | None = Query(None, gt=0, description="Restrict to one category"),
    user_id: str = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> LibraryPage:
    """Return the caller's favorite sense rows, newest first."""

    return await service.list_library(
        user_id=user_id, limit=limit, cursor=cursor, category_id=category_id
    )


@router.post("", response_model=OkResponse)
async def add_favorite(
    payload: FavoriteAddRequest,
    user_id: str = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> OkResponse:
    """Upsert one sense row of a headword into a category."""

    try:
        await service.add_favorite(user_id=user_id, payload=payload)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return OkResponse()


@router.delete("", response_model=RemoveResponse)
async def remove_favorite(
    payload: FavoriteRemoveRequest,
    user_id: str = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> RemoveResponse:
    """Remove every sense of a headword from one category."""

    removed = await service.remove_favorite(user_id=user_id, payload=payload)
    return RemoveResponse(removed=removed)


@router.get("/favorites/categories", response_model=CategoryListResponse)
async def list_categories(
    user_id: str = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> CategoryListResponse:
    """Return the caller's active categories in display order."""

    return await service.list_categories(user_id=user_id)


@router.post(
    "/favorites/categories",
    response_model=Category,
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    payload: CategoryNamePayload,
    user_id: str = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> Category:
    try:
        return await service.create_category(user_id=user_id, name=payload.name)
    except CategoryConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.post("/favorites/categories/reorder", response_model=CategoryListResponse)
async def reorder_categories(
    payload: CategoryReorderRequest,
    user_id: str = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> CategoryListResponse:
    """Persist a full ordering of the caller's active categories."""

    try:
        return await service.reorder_categories(user_id=user_id, ordered_ids=payload.ids)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.patch("/favorites/categories/{category_id}", response_model=Category)
async def rename_category(
    category_id: int,
    payload: CategoryNamePayload,
    user_id: str = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> Category:
    try:
        return await service.rename_category(
            user_id=user_id, category_id=category_id, name=payload.name
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except CategoryConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.post("/favorites/categories/{category_id}/archive", response_model=OkResponse)
async def archive_category(
    category_id: int,
    user_id: str = Depends(get_current_user_id),
    service: LibraryService = Depends(get_library_service),
) -> OkResponse:
    """Archive a category; its favorite rows are kept."""

    try:
        await service.archive_category(user_id=user_id, category_id=category_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return OkResponse()
