"""
Shared building blocks for stored documents.

Documents arrive with camelCase keys (totalEarningsCents). Attributes are
snake_case with camelCase aliases; either spelling validates.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field
from pydantic.alias_generators import to_camel

from utils.timezone import coerce_datetime


def _zero_if_missing(value: Any) -> Any:
    return 0 if value is None else value


# Unrecognizable dates become None instead of failing validation.
LenientDatetime = Annotated[datetime | None, BeforeValidator(coerce_datetime)]

# Stored amounts: integer cents, never negative, missing -> 0.
Cents = Annotated[int, BeforeValidator(_zero_if_missing), Field(ge=0)]

# Derived amounts (profit) may go negative.
SignedCents = Annotated[int, BeforeValidator(_zero_if_missing)]


class DocumentModel(BaseModel):
    """Base for documents read from and written to the document store."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "allow",
    }

    def to_document(self) -> dict[str, Any]:
        """Storage form: camelCase keys, JSON-safe values, None dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
