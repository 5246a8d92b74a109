"""Domain models for items and machine-learning model names."""
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class ModelName(str, Enum):
    """Models that can be looked up by name in ``/models/{model_name}``."""
    alexnet = "alexnet"
    resnet = "resnet"
    lenet = "lenet"


MODEL_MESSAGES = {
    ModelName.alexnet: "Deep Learning FTW!",
    ModelName.lenet: "LeCNN all the images",
}
DEFAULT_MODEL_MESSAGE = "Have some residuals"


def describe_model(model_name: ModelName) -> str:
    """Return the message shown for a model."""
    return MODEL_MESSAGES.get(model_name, DEFAULT_MODEL_MESSAGE)


class Item(BaseModel):
    """Item sent in the body of ``POST /items/``.

    Only ``name`` and ``price`` are required.
    """
    name: str
    description: Optional[str] = None
    price: float
    tax: Optional[float] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Foo",
                "description": "A very nice Item",
                "price": 35.4,
                "tax": 3.2
            }
        }


class ItemOut(Item):
    """Item as returned by the API, with the tax already applied."""
    price_with_tax: Optional[float] = None

    @classmethod
    def from_item(cls, item: Item) -> "ItemOut":
        price_with_tax = item.price + item.tax if item.tax is not None else None
        return cls(**item.model_dump(), price_with_tax=price_with_tax)


class ItemRef(BaseModel):
    """Row kept in the item store and listed by ``GET /items/``."""
    item_name: str


FAKE_ITEMS = [
    {"item_name": "Foo"},
    {"item_name": "Bar"},
    {"item_name": "Baz"},
]
