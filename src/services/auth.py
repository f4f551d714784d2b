"""Authentication service for password hashing, credential checks and session tokens."""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as SchemaError
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.config import get_settings
from src.exceptions import ConflictError
from src.models.user import User
from src.schemas.auth import Identity, SessionUser, TokenClaims, UserRegister

logger = logging.getLogger(__name__)

settings = get_settings()

email_adapter = TypeAdapter(EmailStr)

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def normalize_email(email: str) -> str | None:
    """Normalize an email the way registration stores it, or None if it is invalid."""
    try:
        return email_adapter.validate_python(email)
    except SchemaError:
        return None


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email."""
    return db.query(User).filter(User.email == email).first()


def find_existing_user(db: Session, email: str, username: str) -> User | None:
    """Get a user holding either the email or the username."""
    return db.query(User).filter(or_(User.email == email, User.username == username)).first()


def authenticate_user(db: Session, email: str | None, password: str | None) -> Identity | None:
    """Check an email/password pair and return the matching identity.

    Returns None for missing fields, unknown email or wrong password. The store is
    only queried once both fields are present, and the hash is only checked once a
    user has been found.
    """
    if not email or not password:
        logger.debug("Rejecting login with missing credentials")
        return None

    normalized = normalize_email(email)
    user = get_user_by_email(db, normalized) if normalized else None
    if not user:
        logger.info("Rejecting login for unknown email")
        return None

    if not verify_password(password, user.password_hash):
        logger.info(f"Rejecting login for user {user.id}: password mismatch")
        return None

    return Identity.model_validate(user)


def create_user(db: Session, user_data: UserRegister) -> User:
    """Create a new user, raising ConflictError if email or username is taken."""
    if find_existing_user(db, user_data.email, user_data.username):
        raise ConflictError()

    user = User(
        email=user_data.email,
        username=user_data.username,
        name=user_data.name,
        password_hash=get_password_hash(user_data.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration for the same key
        db.rollback()
        raise ConflictError() from e
    db.refresh(user)
    logger.info(f"Registered user {user.id} ({user.username})")
    return user


# --- Session tokens ---


def build_token_claims(identity: Identity, now: datetime | None = None) -> TokenClaims:
    """Base claims for a freshly authenticated identity."""
    issued = now or datetime.now(UTC)
    expire = issued + timedelta(minutes=settings.jwt_expiration_minutes)
    return TokenClaims(
        sub=str(identity.id),
        email=identity.email,
        name=identity.name,
        iat=int(issued.timestamp()),
        exp=int(expire.timestamp()),
    )


def enrich_token(claims: TokenClaims, identity: Identity | None = None) -> TokenClaims:
    """Copy the username onto the token at login; pass it through otherwise."""
    if identity is None:
        return claims
    return claims.model_copy(update={"username": identity.username})


def project_session(claims: TokenClaims) -> SessionUser:
    """Build the session object exposed to request handlers from token claims."""
    return SessionUser(
        id=int(claims.sub),
        email=claims.email,
        name=claims.name,
        username=claims.username,
    )


def encode_token(claims: TokenClaims) -> str:
    """Sign token claims."""
    return jwt.encode(claims.model_dump(), settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(identity: Identity) -> str:
    """Create a signed session token for a verified identity."""
    claims = enrich_token(build_token_claims(identity), identity)
    return encode_token(claims)


def decode_access_token(token: str) -> TokenClaims | None:
    """Decode and validate a session token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        claims = TokenClaims.model_validate(payload)
        int(claims.sub)
    except (JWTError, SchemaError, ValueError):
        return None
    return claims


def rotate_token_if_due(claims: TokenClaims, now: datetime | None = None) -> str | None:
    """Reissue a token once it is older than the configured update age."""
    current = now or datetime.now(UTC)
    age = current - datetime.fromtimestamp(claims.iat, UTC)
    if age < timedelta(minutes=settings.session_update_age_minutes):
        return None

    expire = current + timedelta(minutes=settings.jwt_expiration_minutes)
    refreshed = claims.model_copy(
        update={"iat": int(current.timestamp()), "exp": int(expire.timestamp())}
    )
    logger.debug(f"Rotating session token for user {claims.sub}")
    return encode_token(enrich_token(refreshed))
