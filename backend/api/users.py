from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request, UploadFile
from pydantic import ValidationError
from sqlalchemy import select, delete as sql_delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from core.config import settings
from core.database import get_db
from core.errors import BadRequest, Conflict, NotFound, UploadFailed
from core.security import get_current_user_id
from core.services import get_blob_store, get_mailer
from models.document import Document
from models.user import User
from schemas.user_schema import (
    UserProfile,
    UserProfileResponse,
    UserUpdate,
    UserUpdateResponse,
    MessageResponse,
)
from services import mailer as mail
from services.blob_store import BlobStore, BlobStoreError
from services.mailer import Mailer
from utils.file_utils import read_upload
from utils.logger import get_logger

logger = get_logger("api.users")

router = APIRouter(prefix="/users", tags=["users"])


async def load_user(db: AsyncSession, user_id: int) -> User:
    """User row with its document reference set loaded."""
    result = await db.execute(
        select(User).options(selectinload(User.documents)).filter(User.id == user_id)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")
    return user


async def email_taken(db: AsyncSession, email: str, user_id: int) -> bool:
    result = await db.execute(
        select(User).filter(User.email == email, User.id != user_id)
    )
    return result.scalar_one_or_none() is not None


async def parse_update(request: Request):
    """Accept either a JSON body or multipart/form fields (with an optional userImage)."""
    content_type = request.headers.get("content-type", "")
    image: Optional[UploadFile] = None

    if content_type.startswith("application/json"):
        try:
            raw = await request.json()
        except ValueError:
            raise BadRequest("Malformed JSON body")
        if not isinstance(raw, dict):
            raise BadRequest("Malformed JSON body")
    else:
        form = await request.form()
        raw = {}
        for key in ("fullName", "email"):
            if form.get(key):
                raw[key] = form.get(key)
        languages = [v for v in form.getlist("language") if isinstance(v, str) and v]
        if languages:
            raw["language"] = languages
        candidate = form.get("userImage")
        if candidate is not None and not isinstance(candidate, str):
            image = candidate

    try:
        update = UserUpdate.model_validate(raw)
    except ValidationError as e:
        raise BadRequest(f"Validation failed: {e.errors()[0]['msg']}")
    return update, image


async def replace_user_image(user: User, image: UploadFile, blob_store: BlobStore) -> None:
    if not (image.content_type or "").startswith("image/"):
        raise BadRequest("userImage must be an image")
    data = await read_upload(image, settings.MAX_UPLOAD_MB)

    # Old image goes first
    if user.user_image_key:
        try:
            await blob_store.delete(user.user_image_key)
        except BlobStoreError as e:
            logger.warning("Old profile image could not be deleted", extra={"user_id": user.id, "error": str(e)})

    key = blob_store.make_key(settings.STORAGE_USER_IMAGE_PREFIX, image.filename or "avatar.jpg")
    try:
        url = await blob_store.upload(key, data, image.content_type)
    except BlobStoreError as e:
        raise UploadFailed("Profile image upload failed") from e

    user.user_image = url
    user.user_image_key = key

# ------ Get current user -----
@router.get("/me", response_model=UserProfileResponse)
async def get_me(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    logger.info("Fetching current user profile", extra={"user_id": user_id})
    user = await load_user(db, user_id)
    return UserProfileResponse(user=UserProfile.model_validate(user))

# ------ Update current user -----
@router.put("/me", response_model=UserUpdateResponse)
async def update_me(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    update, image = await parse_update(request)
    if not update.full_name and not update.email and not update.language and image is None:
        raise BadRequest("No update fields provided")

    user = await load_user(db, user_id)

    if update.full_name:
        user.full_name = update.full_name.strip()

    if update.email:
        email = update.email.strip().lower()
        if await email_taken(db, email, user_id):
            raise Conflict("Email already in use by another account")
        user.email = email

    if update.language:
        user.language = update.language

    if image is not None:
        await replace_user_image(user, image, blob_store)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Email already in use by another account")
    user = await load_user(db, user_id)
    logger.info("User profile updated", extra={"user_id": user_id, "image_updated": image is not None})
    return UserUpdateResponse(message="Account updated successfully", user=UserProfile.model_validate(user))

# ------ Delete current user -----
@router.delete("/me", response_model=MessageResponse)
async def delete_me(
    background_tasks: BackgroundTasks,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
    mailer: Mailer = Depends(get_mailer),
):
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    email, name = user.email, user.full_name

    if user.user_image_key:
        try:
            await blob_store.delete(user.user_image_key)
        except BlobStoreError as e:
            logger.warning("Profile image could not be deleted", extra={"user_id": user_id, "error": str(e)})

    result = await db.execute(sql_delete(Document).where(Document.owner_id == user_id))
    logger.info("Deleted associated documents", extra={"user_id": user_id, "deleted_count": result.rowcount})

    await db.delete(user)
    await db.commit()
    logger.info("User account deleted", extra={"user_id": user_id})

    background_tasks.add_task(mailer.send, email, mail.ACCOUNT_DELETION_CONFIRMATION, {"name": name})
    return MessageResponse(message="Account deleted successfully.")
