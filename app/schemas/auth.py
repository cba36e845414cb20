"""Auth schemas: CurrentUser."""

import uuid

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Caller identity forwarded by the upstream gateway."""

    user_id: uuid.UUID
