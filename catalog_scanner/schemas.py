from __future__ import annotations

from enum import Enum
from typing import List, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PaginationMode(str, Enum):
    """How page N of a listing is addressed."""

    PATH = "path"  # /tienda/page/3/
    QUERY = "query"  # /tienda?page=3


class ExtractMode(str, Enum):
    """How product anchors are told apart from the rest of a listing page."""

    HINT = "hint"
    GENERIC = "generic"


def check_http_url(value: str) -> str:
    value = value.strip()
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"not an absolute http(s) URL: {value!r}")
    return value


class SeedInput(BaseModel):
    """One catalog/listing entry point of a store."""

    model_config = ConfigDict(frozen=True)

    url: str
    label: str = Field(min_length=1, max_length=120)
    pagination_mode: PaginationMode = PaginationMode.PATH
    extract_mode: ExtractMode = ExtractMode.GENERIC
    href_hint: Optional[str] = Field(default=None, max_length=120)
    max_pages: Optional[int] = Field(default=None, gt=0)

    @field_validator("url")
    @classmethod
    def _url_is_http(cls, value: str) -> str:
        return check_http_url(value)

    @model_validator(mode="after")
    def _hint_required_for_hint_mode(self) -> "SeedInput":
        if self.extract_mode is ExtractMode.HINT and not (self.href_hint or "").strip():
            raise ValueError("href_hint is required when extract_mode is 'hint'")
        return self


class StoreInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    store_id: Optional[str] = None
    store_name: str = Field(min_length=1, max_length=200)
    seeds: List[SeedInput] = Field(min_length=1)


class ScanRequest(BaseModel):
    """A batch of stores to scan, plus optional politeness/ceiling overrides."""

    model_config = ConfigDict(frozen=True)

    stores: List[StoreInput] = Field(min_length=1, max_length=40)
    request_delay_ms: Optional[int] = Field(default=None, ge=250, le=5000)
    max_new_products: Optional[int] = Field(default=None, gt=0, le=1000)
