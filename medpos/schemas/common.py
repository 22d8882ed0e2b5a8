from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, PlainSerializer

from medpos.core.money import round_money

# Stored at full precision; rounded to cents only when rendered.
Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: float(round_money(value)), return_type=float, when_used="always"),
]


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=(total + limit - 1) // limit if limit else 0)
