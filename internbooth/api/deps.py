"""
Shared route dependencies
"""
from typing import Optional

from fastapi import Request

from internbooth.core.config import settings


async def get_actor(request: Request) -> Optional[str]:
    """
    Acting admin uid from the actor header

    Missing is allowed here; the protocols raise AuthRequiredError.
    """
    return request.headers.get(settings.actor_header)
