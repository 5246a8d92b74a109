"""FastAPI routes for the primer service.

Path parameters, query parameters and request bodies are all declared with
type hints; FastAPI validates them and answers 422 on bad input.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional, List, Dict, Any

from app.domain.item import Item, ItemOut, ItemRef, ModelName, describe_model
from app.infrastructure.redis import ItemStore, StorageError, get_item_store
from app.core.logging import get_logger, LogTimer

logger = get_logger(__name__)
router = APIRouter()

ITEM_DESCRIPTION = "This is an amazing item that has a long description"


@router.get("/")
async def root():
    return {"message": "Hello World"}


# -----------------
# ITEMS
# -----------------
# Store-backed handlers are plain functions so blocking redis calls run in the threadpool

@router.get("/items/", response_model=List[ItemRef])
def read_items(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=10, ge=0),
    store: ItemStore = Depends(get_item_store),
):
    """List stored items, ``limit`` at a time starting after ``skip``."""
    with LogTimer(logger, "list_items"):
        try:
            return store.list(skip=skip, limit=limit)
        except StorageError as exc:
            raise HTTPException(status_code=503, detail=str(exc))


@router.post("/items/", response_model=ItemOut)
def create_item(item: Item, store: ItemStore = Depends(get_item_store)):
    """Create an item from the JSON body.

    The response echoes the item and adds ``price_with_tax`` when a tax is
    given. The item name is stored so it shows up in ``GET /items/``.

    Example:
        POST /items/
        {"name": "Foo", "price": 35.4, "tax": 3.2}
    """
    with LogTimer(logger, "create_item"):
        try:
            store.add(ItemRef(item_name=item.name).model_dump())
        except StorageError as exc:
            raise HTTPException(status_code=503, detail=str(exc))

        logger.info(f"Item created: {item.name}")
        return ItemOut.from_item(item)


@router.get("/items/{item_id}")
async def read_item(item_id: int, q: Optional[str] = None, short: bool = False):
    """Echo an item id with the optional ``q`` and a description unless ``short``."""
    item: Dict[str, Any] = {"item_id": item_id}
    if q:
        item["q"] = q
    if not short:
        item["description"] = ITEM_DESCRIPTION
    return item


# -----------------
# USERS
# -----------------

# Registered before /users/{user_id} so "me" is not read as a user id
@router.get("/users/me")
async def read_user_me():
    return {"user_id": "the current user"}


@router.get("/users/{user_id}")
async def read_user(user_id: str):
    return {"user_id": user_id}


# -----------------
# MODELS
# -----------------

@router.get("/models/{model_name}")
async def get_model(model_name: ModelName):
    """Return a message for one of the predefined model names."""
    return {"model_name": model_name, "message": describe_model(model_name)}
