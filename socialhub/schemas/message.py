from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SendMessageRequest(BaseModel):

    model_config = ConfigDict(populate_by_name=True)

    recipient_id: str = Field(alias="recipientId", min_length=1)
    # emptiness is checked by the service so it maps to 400, not 422
    content: Optional[str] = None
