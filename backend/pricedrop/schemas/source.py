"""Source schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class SourceResponse(BaseModel):
    """A configured source and its persisted registry state.

    ``id`` is None until the source has been scraped successfully once.
    """

    code: str
    name: str
    url_base: str
    scrape_type: str
    country: str
    currency: str
    is_active: bool = True
    id: Optional[UUID] = None
