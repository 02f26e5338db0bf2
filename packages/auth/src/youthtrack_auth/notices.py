"""User-visible notices (the toasts of the web client).

The bridge emits a Notice after sign-in, sign-out and profile updates. How it
is shown is up to the host application, which passes its own ``notify``
callable; without one, notices go to the log.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Notice(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


Notifier = Callable[[Notice], None]


def log_notice(notice: Notice) -> None:
    level = logging.WARNING if notice.variant == "destructive" else logging.INFO
    logger.log(level, f"{notice.title}: {notice.description}")
