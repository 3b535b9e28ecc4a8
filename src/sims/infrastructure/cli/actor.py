"""Who the CLI acts as.  Taken from settings (``SIMS_OPERATOR_*``)."""

from __future__ import annotations

from sims.application.dto import Actor
from sims.infrastructure.config import get_settings


def current_actor() -> Actor:
    settings = get_settings()
    return Actor(
        id=settings.operator_id,
        name=settings.operator_name,
        department=settings.operator_department,
    )
