# =============================================================================
# Accounts: registration, session login, recovery-credential password reset
# =============================================================================

from __future__ import annotations

import logging
import secrets
import string
import uuid

import bcrypt
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_session
from .errors import AuthError, ValidationError
from .models import User
from .ratelimit import rate_limit
from .schemas import (
    CredentialsIn,
    CurrentUserOut,
    LoginOut,
    MeOut,
    MessageOut,
    RecoveryOut,
    RegisterOut,
    ResetPasswordIn,
    UserOut,
)

log = logging.getLogger("gymlog.auth")

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt ignores anything longer
RECOVERY_SECRET_LENGTH = 32
_RECOVERY_ALPHABET = string.ascii_letters + string.digits


# -----------------------------------------------------------------------------
# Hashing (bcrypt is CPU-bound: keep it off the event loop)
# -----------------------------------------------------------------------------
def _hash(secret: str, rounds: int) -> str:
    return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def _check(secret: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(secret.encode("utf-8"), hashed.encode("ascii"))
    except ValueError:
        return False


async def hash_secret(secret: str, rounds: int) -> str:
    return await run_in_threadpool(_hash, secret, rounds)


async def verify_secret(secret: str, hashed: str) -> bool:
    return await run_in_threadpool(_check, secret, hashed)


def generate_recovery_secret(length: int = RECOVERY_SECRET_LENGTH) -> str:
    return "".join(secrets.choice(_RECOVERY_ALPHABET) for _ in range(length))


def check_new_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


# -----------------------------------------------------------------------------
# Session helpers
# -----------------------------------------------------------------------------
def _start_session(request: Request, user: User) -> None:
    request.session.clear()
    request.session["user_id"] = user.id
    request.session["username"] = user.username


def current_user_id(request: Request) -> int:
    """Dependency: the logged-in user's id, or 401."""
    user_id = request.session.get("user_id")
    if user_id is None:
        raise AuthError("Not authenticated")
    return int(user_id)


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=RegisterOut,
    status_code=201,
    dependencies=[Depends(rate_limit)],
)
async def register(
    body: CredentialsIn,
    request: Request,
    s: AsyncSession = Depends(get_session),
) -> RegisterOut:
    if not body.username or not body.password:
        raise ValidationError("Username and password are required")
    check_new_password(body.password)

    existing = await s.scalar(select(User.id).where(User.username == body.username))
    if existing is not None:
        raise ValidationError("Username already exists")

    rounds = request.app.state.settings.bcrypt_rounds
    recovery_secret = generate_recovery_secret()
    user = User(
        username=body.username,
        password_hash=await hash_secret(body.password, rounds),
        recovery_uuid=str(uuid.uuid4()),
        recovery_secret_hash=await hash_secret(recovery_secret, rounds),
    )
    s.add(user)
    try:
        await s.commit()
    except IntegrityError:
        # Lost a race with another registration of the same name
        await s.rollback()
        raise ValidationError("Username already exists")

    _start_session(request, user)
    log.info(f"Registered user {user.id} ({user.username})")
    return RegisterOut(
        message="User registered successfully",
        user=UserOut(id=user.id, username=user.username),
        recovery=RecoveryOut(uuid=user.recovery_uuid, secret=recovery_secret),
    )


@router.post("/login", response_model=LoginOut, dependencies=[Depends(rate_limit)])
async def login(
    body: CredentialsIn,
    request: Request,
    s: AsyncSession = Depends(get_session),
) -> LoginOut:
    if not body.username or not body.password:
        raise ValidationError("Username and password are required")

    user = await s.scalar(select(User).where(User.username == body.username))
    if user is None or not await verify_secret(body.password, user.password_hash):
        log.warning(f"Failed login for {body.username!r}")
        raise AuthError("Invalid username or password")

    _start_session(request, user)
    return LoginOut(message="Login successful", user=UserOut(id=user.id, username=user.username))


@router.post("/logout", response_model=MessageOut)
async def logout(request: Request) -> MessageOut:
    request.session.clear()
    return MessageOut(message="Logged out successfully")


@router.get("/me", response_model=MeOut)
async def me(
    request: Request,
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> MeOut:
    user = await s.get(User, user_id)
    if user is None:
        request.session.clear()
        raise AuthError("Not authenticated")
    return MeOut(
        user=CurrentUserOut(id=user.id, username=user.username, created_at=user.created_at)
    )


@router.post(
    "/reset-password",
    response_model=LoginOut,
    dependencies=[Depends(rate_limit)],
)
async def reset_password(
    body: ResetPasswordIn,
    request: Request,
    s: AsyncSession = Depends(get_session),
) -> LoginOut:
    if not body.recovery_uuid or not body.recovery_secret or not body.new_password:
        raise ValidationError(
            "Recovery UUID, recovery secret, and new password are required"
        )
    check_new_password(body.new_password)

    user = await s.scalar(select(User).where(User.recovery_uuid == body.recovery_uuid))
    if (
        user is None
        or not user.recovery_secret_hash
        or not await verify_secret(body.recovery_secret, user.recovery_secret_hash)
    ):
        log.warning("Password reset rejected: invalid recovery credentials")
        raise AuthError("Invalid recovery credentials")

    user.password_hash = await hash_secret(
        body.new_password, request.app.state.settings.bcrypt_rounds
    )
    await s.commit()
    log.info(f"Password reset for user {user.id}")
    return LoginOut(
        message="Password reset successfully",
        user=UserOut(id=user.id, username=user.username),
    )
