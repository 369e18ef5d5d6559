from pydantic import BaseModel, field_validator
from typing import Union

# Rows use UUID strings or serial integers depending on the table
RowId = Union[int, str]


class CountsMixin(BaseModel):
    """Counters are maintained by the backend and may come back null."""

    @field_validator(
        "view_count", "like_count", "save_count", mode="before", check_fields=False
    )
    @classmethod
    def null_count_is_zero(cls, v):
        return 0 if v is None else v
