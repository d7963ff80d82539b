"""User and voice profile endpoints.

POST /api/users
PUT  /api/users/{user_id}/voice-profile
GET  /api/users/{user_id}
"""

import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from backend.routes.deps import store_dependency
from seogen.models import User, VoiceProfile
from seogen.store import EntityStore, require

logger = logging.getLogger(__name__)
router = APIRouter()


class CreateUserRequest(BaseModel):
    email: str
    voice_profile: VoiceProfile | None = None


@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(request: CreateUserRequest, store: EntityStore = Depends(store_dependency)):
    user = store.save(User(email=request.email, voice_profile=request.voice_profile))
    logger.info("Created user %s", user.id)
    return user


@router.get("/users/{user_id}", response_model=User)
async def get_user(user_id: str, store: EntityStore = Depends(store_dependency)):
    return require(store, User, user_id)


@router.put("/users/{user_id}/voice-profile", response_model=User)
async def set_voice_profile(
    user_id: str,
    profile: VoiceProfile,
    store: EntityStore = Depends(store_dependency),
):
    """Replace the voice applied when drafting this user's future articles."""
    user = require(store, User, user_id)
    user.voice_profile = profile
    return store.save(user)
