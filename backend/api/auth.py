import secrets
from datetime import timedelta, timezone
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from core.config import settings
from core.database import get_db, utcnow
from core.errors import BadRequest, Conflict, Unauthorized, InternalError
from core.security import hash_password, verify_password, create_user_token, get_current_user
from core.services import get_mailer
from models.user import User
from schemas.user_schema import (
    UserCreate,
    UserLogin,
    AuthResponse,
    UserSummary,
    MessageResponse,
    ChangePasswordRequest,
    SendOtpRequest,
    ForgotPasswordRequest,
)
from services import mailer as mail
from services.mailer import Mailer
from utils.logger import get_logger

logger = get_logger("api.auth")

router = APIRouter(prefix="/users", tags=["auth"])

OTP_SENT_MESSAGE = "If an account with this email exists, an OTP has been sent."


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_otp() -> str:
    """Six-digit numeric one-time code."""
    return f"{secrets.randbelow(900000) + 100000}"


async def find_user_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).filter(User.email == normalize_email(email)))
    return result.scalar_one_or_none()

# ------ Register User -----
@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup_user(body: UserCreate, db: AsyncSession = Depends(get_db)):
    if not body.full_name or not body.email or not body.password:
        raise BadRequest("Please provide fullName, email, and password")

    logger.info("User registration attempt", extra={"email": body.email})

    if await find_user_by_email(db, body.email):
        logger.warning("Registration failed - email exists", extra={"email": body.email})
        raise Conflict("Email already in use")

    new_user = User(
        full_name=body.full_name.strip(),
        email=normalize_email(body.email),
        password_hash=hash_password(body.password),
    )
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        # Unique email index caught a concurrent signup
        await db.rollback()
        logger.warning("Registration failed - email exists", extra={"email": body.email})
        raise Conflict("Email already in use")
    await db.refresh(new_user)

    logger.info("User registered successfully", extra={"user_id": new_user.id})
    return AuthResponse(
        message="User created successfully",
        token=create_user_token(new_user),
        user=UserSummary.model_validate(new_user),
    )

# ------ Login User -----
@router.post("/login", response_model=AuthResponse)
async def login_user(body: UserLogin, db: AsyncSession = Depends(get_db)):
    if not body.email or not body.password:
        raise BadRequest("Please provide email and password")

    logger.info("Login attempt", extra={"email": body.email})

    user = await find_user_by_email(db, body.email)
    if not user or not verify_password(body.password, user.password_hash):
        logger.warning("Login failed - invalid credentials", extra={"email": body.email})
        raise Unauthorized("Invalid credentials")

    logger.info("Login successful", extra={"user_id": user.id})
    return AuthResponse(
        message="Login successful",
        token=create_user_token(user),
        user=UserSummary.model_validate(user),
    )

# ------ Change Password (logged-in user) -----
@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    if not body.old_password or not body.new_password:
        raise BadRequest("Please provide old password and new password")
    if body.old_password == body.new_password:
        raise BadRequest("New password cannot be the same as the old password.")

    if not verify_password(body.old_password, user.password_hash):
        logger.warning("Password change failed - wrong old password", extra={"user_id": user.id})
        raise Unauthorized("Invalid old password")

    user.password_hash = hash_password(body.new_password)
    await db.commit()
    logger.info("Password changed", extra={"user_id": user.id})

    background_tasks.add_task(
        mailer.send, user.email, mail.PASSWORD_CHANGE_CONFIRMATION, {"name": user.full_name}
    )
    return MessageResponse(message="Password updated successfully")

# ------ Send OTP (forgot password, step 1) -----
@router.post("/sendOtp", response_model=MessageResponse)
async def send_otp(
    body: SendOtpRequest,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    if not body.email:
        raise BadRequest("Please provide email")

    user = await find_user_by_email(db, body.email)
    if not user:
        # Same answer as the success path so accounts cannot be enumerated
        logger.info("OTP requested for unknown email", extra={"email": body.email})
        return MessageResponse(message=OTP_SENT_MESSAGE)

    otp = generate_otp()
    user.otp = otp
    user.otp_expiry = utcnow() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)
    await db.commit()

    sent = await mailer.send(user.email, mail.OTP, {"otp": otp, "name": user.full_name})
    if not sent:
        logger.error("Failed to send OTP email", extra={"user_id": user.id})
        raise InternalError("Error processing request. Please try again later.")

    logger.info("OTP issued", extra={"user_id": user.id})
    return MessageResponse(message=OTP_SENT_MESSAGE)

# ------ Verify OTP and reset password (forgot password, step 2) -----
@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    if not body.email or not body.otp or not body.new_password:
        raise BadRequest("Please provide email, OTP, and new password")

    user = await find_user_by_email(db, body.email)
    invalid = (
        user is None
        or not user.otp
        or not secrets.compare_digest(user.otp.encode(), body.otp.encode())
        or user.otp_expiry is None
        or _as_aware(user.otp_expiry) <= utcnow()
    )
    if invalid:
        logger.warning("Password reset failed - invalid or expired OTP", extra={"email": body.email})
        raise BadRequest("Invalid or expired OTP, or user not found.")

    user.password_hash = hash_password(body.new_password)
    user.otp = None
    user.otp_expiry = None
    await db.commit()
    logger.info("Password reset successful", extra={"user_id": user.id})

    background_tasks.add_task(
        mailer.send, user.email, mail.PASSWORD_RESET_CONFIRMATION, {"name": user.full_name}
    )
    return MessageResponse(message="Password reset successfully")


def _as_aware(value):
    # SQLite hands timezone-aware columns back naive
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
