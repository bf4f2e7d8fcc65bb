"""Request context for ownership enforcement."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class RequestContext:
    """Already-authenticated caller identity.

    Used to scope every repository operation to the owner's routes.
    """

    user_id: UUID
