"""Admin moderation schemas."""
from typing import List
from pydantic import BaseModel

from jobboard.schemas.application import ApplicationDetail
from jobboard.schemas.job import JobResponse
from jobboard.schemas.profile import UserResponse


class AdminUserPage(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    pages: int


class AdminJobPage(BaseModel):
    items: List[JobResponse]
    total: int
    page: int
    pages: int


class AdminApplicationPage(BaseModel):
    items: List[ApplicationDetail]
    total: int
    page: int
    pages: int
