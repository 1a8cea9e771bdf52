"""Notification payload paired with every mutating action."""

from typing import Any, Literal

from pydantic import BaseModel

from internconnect.core.exceptions import InternConnectError


class Notification(BaseModel):
    """Toast shown to the user after an action."""

    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class ActionResult(BaseModel):
    """Outcome of a mutating action plus the toast summarizing it."""

    ok: bool
    notification: Notification
    data: Any = None


def success(title: str, description: str, data: Any = None) -> ActionResult:
    return ActionResult(
        ok=True,
        notification=Notification(title=title, description=description),
        data=data,
    )


def failure(title: str, error: InternConnectError) -> ActionResult:
    return ActionResult(
        ok=False,
        notification=Notification(
            title=title, description=error.message, variant="destructive"
        ),
    )
