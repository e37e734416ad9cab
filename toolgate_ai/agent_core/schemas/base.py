"""Pydantic base schema utilities for agent core models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base Pydantic model for all core schemas.

    Configures common Pydantic behaviors:
    - ``populate_by_name=True``: payloads arriving from the UI message protocol use
      camelCase keys (declared as aliases) while Python code uses snake_case names.
    - ``extra="ignore"``: host-owned records carry many fields the core never reads;
      unknown keys are dropped instead of failing validation.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )
