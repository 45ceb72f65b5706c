from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReactRequest(BaseModel):

    model_config = ConfigDict(populate_by_name=True)

    reaction_type: str = Field(alias="reactionType")


class CommentRequest(BaseModel):

    content: Optional[str] = None
