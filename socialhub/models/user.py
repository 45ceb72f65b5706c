from typing import Optional, TypedDict


class UserSummary(TypedDict, total=False):

    _id: str
    name: Optional[str]
    profile_picture: Optional[str]
