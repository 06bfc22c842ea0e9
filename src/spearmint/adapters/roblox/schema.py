"""Pydantic models describing the Roblox Open Cloud payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RobloxBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DevProductResponse(RobloxBaseModel):
    product_id: int = Field(alias="productId")
    name: str | None = None


class GamepassResponse(RobloxBaseModel):
    game_pass_id: int = Field(alias="gamePassId")
    name: str | None = None


class ErrorResponse(RobloxBaseModel):
    code: str | int | None = None
    message: str | None = None
    error_code: str | None = Field(default=None, alias="errorCode")
    error_message: str | None = Field(default=None, alias="errorMessage")

    @property
    def detail(self) -> str | None:
        return self.message or self.error_message
