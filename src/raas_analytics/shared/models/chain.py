# raas_analytics/shared/models/chain.py

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from raas_analytics.shared.enums import ChainStatus, LayerType
from raas_analytics.transformation.normalizers import (
    UNKNOWN,
    normalize_category,
    normalize_layer_type,
    normalize_status,
    strip_trailing_slashes,
)


class ChainRecord(BaseModel):
    """
    One rollup in the ecosystem registry.

    Category fields are trimmed on construction and collapse to "Unknown"
    when empty, so every grouping downstream sees the same sentinel.
    """

    model_config = ConfigDict(frozen=True)

    # ========== IDENTITY (Required) ==========
    name: str = Field(..., min_length=1, description="Unique display key")
    explorer_url: str = Field(..., min_length=1)

    # ========== EXTERNAL IDS (Optional) ==========
    external_project_id: str | None = Field(default=None)
    website: str | None = Field(default=None)
    logo_url: str | None = Field(default=None)

    # ========== LAUNCH ==========
    launch_date: date | None = Field(default=None)
    year: str | None = Field(default=None)
    quarter: str | None = Field(default=None)
    month: str | None = Field(default=None)

    # ========== CATEGORIES ==========
    raas_provider: str = Field(default=UNKNOWN)
    vertical: str = Field(default=UNKNOWN)
    framework: str = Field(default=UNKNOWN)
    data_availability: str = Field(default=UNKNOWN)
    layer_type: LayerType = Field(default=LayerType.UNKNOWN)
    settlement_layer: str = Field(default=UNKNOWN)
    status: ChainStatus = Field(default=ChainStatus.UNKNOWN)

    # ==================== VALIDATORS ====================

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("explorer_url")
    @classmethod
    def normalize_explorer_url(cls, v: str) -> str:
        v = strip_trailing_slashes(v)
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"explorer_url must be an http(s) URL, got {v!r}")
        return v

    @field_validator(
        "external_project_id", "website", "logo_url", "year", "quarter", "month",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator(
        "raas_provider", "vertical", "framework", "data_availability", "settlement_layer",
        mode="before",
    )
    @classmethod
    def normalize_categories(cls, v: Any) -> str:
        return normalize_category(v)

    @field_validator("layer_type", mode="before")
    @classmethod
    def normalize_layer(cls, v: Any) -> LayerType:
        if isinstance(v, LayerType):
            return v
        return normalize_layer_type(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_chain_status(cls, v: Any) -> ChainStatus:
        if isinstance(v, ChainStatus):
            return v
        return normalize_status(v)

    # ==================== PROPERTIES ====================

    @property
    def is_mainnet(self) -> bool:
        return self.status == ChainStatus.MAINNET

    @property
    def has_project_id(self) -> bool:
        return bool(self.external_project_id)

    # ==================== SERIALIZATION ====================

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
