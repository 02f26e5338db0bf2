"""Pydantic base models shared across components.

Every operation that can fail for an expected business reason returns one of
these envelopes instead of raising. Callers branch on ``success`` and render
``message`` (or ``error``) to the person in front of the screen.
"""

from pydantic import BaseModel


class PlatformResult(BaseModel):
    """Standard result envelope returned by bridge operations and activities.

    Expected failures (wrong code, backend refused the write) come back as
    ``success=False`` with a human-readable message. Only programming errors
    escape as exceptions.
    """

    success: bool
    message: str
