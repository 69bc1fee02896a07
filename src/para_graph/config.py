"""
Central configuration for the relationship graph.
"""
from __future__ import annotations

import logging

from pydantic import BaseModel, Field


class Settings(BaseModel):
    neighbor_limit: int = Field(5, ge=0)
    top_k: int = Field(5, ge=0)
    namespace_ids: bool = False
    log_level: str = "INFO"


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """
    Set up root logging for the CLI and API entry points.
    """
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
