from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, constr


class UserOut(BaseModel):
    id: str
    email: str
    username: Optional[str] = None
    full_name: Optional[str] = None
    tier: str
    role: str
    purchases: List[str] = []


class UpdateTierRequest(BaseModel):
    tier: str


class UpdateAccountRequest(BaseModel):
    username: constr(strip_whitespace=True, min_length=3, max_length=64)
    password: Optional[constr(min_length=8, max_length=128)] = None
