"""
Catalog routes: map each method and path to a controller operation.
"""

import json
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status

from api.database import get_database
from api.models import DashboardResponse
from catalog.authors import AuthorController
from catalog.bookinstances import BookInstanceController
from catalog.books import BookController
from catalog.database import CatalogDatabase
from catalog.genres import GenreController

router = APIRouter()

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def form_fields(request: Request) -> Dict[str, Any]:
    """
    Read submitted fields from a JSON or form-encoded body.

    Repeated form fields (e.g. several genre checkboxes) become a list.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        fields = {}
        for key in form.keys():
            values = form.getlist(key)
            fields[key] = values if len(values) > 1 else values[0]
        return fields

    body = await request.body()
    if not body:
        return {}
    try:
        fields = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed JSON body")
    if not isinstance(fields, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Body must be a JSON object")
    return fields


def author_controller(db: CatalogDatabase = Depends(get_database)) -> AuthorController:
    return AuthorController(db)


def book_controller(db: CatalogDatabase = Depends(get_database)) -> BookController:
    return BookController(db)


def genre_controller(db: CatalogDatabase = Depends(get_database)) -> GenreController:
    return GenreController(db)


def bookinstance_controller(db: CatalogDatabase = Depends(get_database)) -> BookInstanceController:
    return BookInstanceController(db)


# Book routes
@router.get("/", response_model=DashboardResponse, tags=["Books"])
async def index(controller: BookController = Depends(book_controller)):
    """Catalog home page counts."""
    return await controller.index()


@router.post("/book/create", tags=["Books"])
async def book_create(
    fields: Dict[str, Any] = Depends(form_fields),
    controller: BookController = Depends(book_controller)
):
    return await controller.create(fields)


@router.post("/book/delete", tags=["Books"])
async def book_delete(
    fields: Dict[str, Any] = Depends(form_fields),
    controller: BookController = Depends(book_controller)
):
    return await controller.delete(fields.get("id"))


@router.post("/book/{book_id}/update", tags=["Books"])
async def book_update(
    book_id: str,
    fields: Dict[str, Any] = Depends(form_fields),
    controller: BookController = Depends(book_controller)
):
    return await controller.update(book_id, fields)


@router.get("/book/{book_id}", tags=["Books"])
async def book_detail(book_id: str, controller: BookController = Depends(book_controller)):
    return await controller.detail(book_id)


@router.get("/books", tags=["Books"])
async def book_list(controller: BookController = Depends(book_controller)):
    """
    All books, sorted by title ignoring case.
    """
    return await controller.list()


# Author routes
@router.post("/author/create", tags=["Authors"])
async def author_create(
    fields: Dict[str, Any] = Depends(form_fields),
    controller: AuthorController = Depends(author_controller)
):
    return await controller.create(fields)


@router.post("/author/delete", tags=["Authors"])
async def author_delete(
    fields: Dict[str, Any] = Depends(form_fields),
    controller: AuthorController = Depends(author_controller)
):
    return await controller.delete(fields.get("id"))


@router.post("/author/{author_id}/update", tags=["Authors"])
async def author_update(
    author_id: str,
    fields: Dict[str, Any] = Depends(form_fields),
    controller: AuthorController = Depends(author_controller)
):
    return await controller.update(author_id, fields)


@router.get("/author/{author_id}", tags=["Authors"])
async def author_detail(author_id: str, controller: AuthorController = Depends(author_controller)):
    return await controller.detail(author_id)


@router.get("/authors", tags=["Authors"])
async def author_list(controller: AuthorController = Depends(author_controller)):
    return await controller.list()


# Genre routes
@router.post("/genre/create", tags=["Genres"])
async def genre_create(
    fields: Dict[str, Any] = Depends(form_fields),
    controller: GenreController = Depends(genre_controller)
):
    return await controller.create(fields)


@router.post("/genre/delete", tags=["Genres"])
async def genre_delete(
    fields: Dict[str, Any] = Depends(form_fields),
    controller: GenreController = Depends(genre_controller)
):
    return await controller.delete(fields.get("id"))


@router.post("/genre/{genre_id}/update", tags=["Genres"])
async def genre_update(
    genre_id: str,
    fields: Dict[str, Any] = Depends(form_fields),
    controller: GenreController = Depends(genre_controller)
):
    return await controller.update(genre_id, fields)


@router.get("/genre/{genre_id}", tags=["Genres"])
async def genre_detail(genre_id: str, controller: GenreController = Depends(genre_controller)):
    return await controller.detail(genre_id)


@router.get("/genres", tags=["Genres"])
async def genre_list(controller: GenreController = Depends(genre_controller)):
    return await controller.list()


# BookInstance routes
@router.post("/bookinstance/create", tags=["Book copies"])
async def bookinstance_create(
    fields: Dict[str, Any] = Depends(form_fields),
    controller: BookInstanceController = Depends(bookinstance_controller)
):
    return await controller.create(fields)


@router.post("/bookinstance/delete", tags=["Book copies"])
async def bookinstance_delete(
    fields: Dict[str, Any] = Depends(form_fields),
    controller: BookInstanceController = Depends(bookinstance_controller)
):
    return await controller.delete(fields.get("id"))


@router.post("/bookinstance/{instance_id}/update", tags=["Book copies"])
async def bookinstance_update(
    instance_id: str,
    fields: Dict[str, Any] = Depends(form_fields),
    controller: BookInstanceController = Depends(bookinstance_controller)
):
    return await controller.update(instance_id, fields)


@router.get("/bookinstance/{instance_id}", tags=["Book copies"])
async def bookinstance_detail(
    instance_id: str,
    controller: BookInstanceController = Depends(bookinstance_controller)
):
    return await controller.detail(instance_id)


@router.get("/bookinstances", tags=["Book copies"])
async def bookinstance_list(controller: BookInstanceController = Depends(bookinstance_controller)):
    return await controller.list()
