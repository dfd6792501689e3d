"""Cart ownership.

A cart belongs to exactly one of a registered user or an anonymous guest
session.  Modelling it as two variants of one type makes "both" and
"neither" unrepresentable.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Union

from storefront.domain.exceptions import ValidationError


@dataclass(frozen=True)
class UserOwner:
    user_id: int

    def __str__(self) -> str:
        return f"user:{self.user_id}"


@dataclass(frozen=True)
class GuestOwner:
    token: str

    def __post_init__(self) -> None:
        if not self.token or not self.token.strip():
            raise ValidationError("Guest session token is required")

    @staticmethod
    def generate() -> GuestOwner:
        return GuestOwner(token=str(uuid.uuid4()))

    def __str__(self) -> str:
        return f"guest:{self.token}"


Owner = Union[UserOwner, GuestOwner]
