"""Authentication service for password login and JWT management."""

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from backend.config import BackendSettings
from backend.services.firestore_service import FirestoreService
from tuneforge.core.exceptions import AlreadyExistsError, AuthenticationError, NotFoundError
from tuneforge.core.models import User

logger = logging.getLogger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def hash_password(password: str) -> str:
    """Hash a plain-text password."""
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plain-text password against a hash."""
    if not password_hash:
        return False
    return _pwd_context.verify(password, password_hash)


class AuthService:
    """Service for authentication operations."""

    USERS_COLLECTION = "users"
    # Claim documents keyed by hashed email/username enforce uniqueness
    EMAILS_COLLECTION = "user_emails"
    USERNAMES_COLLECTION = "usernames"

    def __init__(self, settings: BackendSettings, firestore: FirestoreService):
        self.settings = settings
        self.firestore = firestore

    def _hash_key(self, value: str) -> str:
        """Hash an email or username for use as a claim document ID.

        Returns:
            SHA-256 hex digest of the value
        """
        return hashlib.sha256(value.encode()).hexdigest()

    def _generate_user_id(self) -> str:
        """Generate a unique user ID.

        Returns:
            user_ prefixed random hex string
        """
        return f"user_{secrets.token_hex(12)}"

    async def _find_one(self, field: str, value: Any) -> dict[str, Any] | None:
        docs = await self.firestore.query_documents(
            self.USERS_COLLECTION,
            filters=[(field, "==", value)],
            limit=1,
        )
        return docs[0] if docs else None

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> User:
        """Create a new account.

        Raises:
            AlreadyExistsError: If the username or email is taken.
        """
        email = email.strip().lower()
        username = username.strip()

        if await self._find_one("email", email) is not None:
            raise AlreadyExistsError("User with this email or username already exists")
        if await self._find_one("username", username) is not None:
            raise AlreadyExistsError("User with this email or username already exists")

        user = User(
            id=self._generate_user_id(),
            username=username,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
        )

        claim = {"user_id": user.id}
        try:
            await self.firestore.create_documents(
                [
                    (self.EMAILS_COLLECTION, self._hash_key(email), claim),
                    (self.USERNAMES_COLLECTION, self._hash_key(username), claim),
                    (self.USERS_COLLECTION, user.id, user.to_document()),
                ]
            )
        except AlreadyExistsError:
            raise AlreadyExistsError("User with this email or username already exists")
        logger.info(f"Registered user {user.id} ({username})")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials and stamp the login time.

        Raises:
            AuthenticationError: If the email is unknown, the account is disabled,
                or the password does not match.
        """
        doc = await self._find_one("email", email.strip().lower())
        if doc is None or not doc.get("is_active", True):
            raise AuthenticationError("Invalid email or password")

        user = User.from_document(doc)
        if not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        user.last_login = datetime.now(UTC)
        user.version = await self.firestore.update_document_versioned(
            self.USERS_COLLECTION,
            user.id,
            {"last_login": user.last_login.isoformat()},
            expected_version=user.version,
        )
        return user

    async def get_user_by_id(self, user_id: str) -> User | None:
        """Get a user by their user ID.

        Args:
            user_id: User's ID (user_xxx format)

        Returns:
            User model or None if not found
        """
        doc = await self.firestore.get_document(self.USERS_COLLECTION, user_id)
        if doc is None:
            return None
        return User.from_document(doc)

    def generate_jwt(self, user: User) -> tuple[str, int]:
        """Generate a JWT token for the user.

        Only the user ID is trusted from the token; role and subscription are
        re-read from Firestore on every request.

        Returns:
            Tuple of (token, expires_in_seconds)

        Raises:
            ValueError: If JWT secret is not configured
        """
        if not self.settings.jwt_secret:
            raise ValueError("JWT_SECRET is not configured")

        now = datetime.now(UTC)
        expires_at = now + timedelta(hours=self.settings.jwt_expiration_hours)
        expires_in = int((expires_at - now).total_seconds())

        payload = {
            "sub": user.id,
            "username": user.username,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }

        token = jwt.encode(
            payload,
            self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm,
        )

        return token, expires_in

    def validate_jwt(self, token: str) -> dict[str, Any]:
        """Validate a JWT token and return its claims.

        Raises:
            AuthenticationError: If token is invalid or expired
        """
        if not self.settings.jwt_secret:
            raise AuthenticationError("JWT_SECRET is not configured")

        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
            )
            return dict(payload)
        except JWTError as e:
            raise AuthenticationError(f"Invalid token: {e}")

    async def update_profile(
        self,
        user_id: str,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Update a user's profile.

        Raises:
            NotFoundError: If the user does not exist.
            AlreadyExistsError: If the new username belongs to someone else.
        """
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        update_data: dict[str, Any] = {}
        old_username = user.username
        claimed: str | None = None

        if username is not None and username != user.username:
            existing = await self._find_one("username", username)
            if existing is not None and existing["id"] != user_id:
                raise AlreadyExistsError("Username is already taken")
            claimed = self._hash_key(username)
            try:
                await self.firestore.create_documents(
                    [(self.USERNAMES_COLLECTION, claimed, {"user_id": user_id})]
                )
            except AlreadyExistsError:
                raise AlreadyExistsError("Username is already taken")
            user.username = username
            update_data["username"] = username
        if first_name is not None:
            user.first_name = first_name
            update_data["first_name"] = first_name
        if last_name is not None:
            user.last_name = last_name
            update_data["last_name"] = last_name

        user.updated_at = datetime.now(UTC)
        update_data["updated_at"] = user.updated_at.isoformat()

        try:
            user.version = await self.firestore.update_document_versioned(
                self.USERS_COLLECTION,
                user_id,
                update_data,
                expected_version=user.version,
            )
        except Exception:
            if claimed is not None:
                await self.firestore.delete_document(self.USERNAMES_COLLECTION, claimed)
            raise

        if claimed is not None:
            await self.firestore.delete_document(self.USERNAMES_COLLECTION, self._hash_key(old_username))
        return user


# Singleton instance (lazy initialization)
_auth_service: AuthService | None = None


def get_auth_service(
    settings: BackendSettings | None = None,
    firestore: FirestoreService | None = None,
) -> AuthService:
    """Get the auth service instance.

    Args:
        settings: Optional settings override (for testing)
        firestore: Optional Firestore service override (for testing)

    Returns:
        AuthService instance
    """
    global _auth_service
    if _auth_service is None or settings is not None or firestore is not None:
        if settings is None:
            from backend.config import get_backend_settings

            settings = get_backend_settings()
        if firestore is None:
            firestore = FirestoreService(settings)
        _auth_service = AuthService(settings, firestore)
    return _auth_service
