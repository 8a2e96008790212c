"""
Base schema: camelCase on the wire, snake_case in Python.
"""
from typing import Generic, List, TypeVar
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Page(CamelModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int


class MessageResponse(CamelModel):
    message: str
