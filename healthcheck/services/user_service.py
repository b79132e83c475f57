import hashlib
import logging
import os
import uuid
from datetime import datetime, timezone

import bcrypt
from fastapi import Depends
from google.api_core.exceptions import AlreadyExists
from google.cloud.firestore import Client
from google.cloud.firestore_v1.base_query import FieldFilter
from starlette.concurrency import run_in_threadpool

from healthcheck.database import STORE_ERRORS, get_db
from healthcheck.models.user import BCRYPT_MAX_PASSWORD_BYTES, RegisterForm, User

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))


class EmailTakenError(Exception):
    pass


class InvalidCredentialsError(Exception):
    pass


class StorageFailureError(Exception):
    pass


class UserService:
    """Service for user-related operations."""

    COLLECTION_NAME = "users"
    EMAIL_INDEX_COLLECTION_NAME = "user_emails"

    def __init__(self, db: Client):
        self.db = db
        self.collection = self.db.collection(self.COLLECTION_NAME)
        self.email_index = self.db.collection(self.EMAIL_INDEX_COLLECTION_NAME)

    @staticmethod
    def email_key(email: str) -> str:
        """Document ID of the uniqueness marker for an email."""
        return hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()

    async def register(self, form: RegisterForm) -> User:
        """
        Create a new user with a hashed password.

        The email lookup only short-circuits the common case. Uniqueness is
        guaranteed by creating the email marker and the user in one batch:
        if the marker already exists the batch fails and nothing is written.
        """
        if await self.get_user_by_email(form.email):
            raise EmailTakenError(f"Email {form.email} already registered")

        user_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)

        password_hash = bcrypt.hashpw(form.password.encode('utf-8'), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
        password_hash = password_hash.decode('utf-8')
        user_doc = {
            "id": user_id,
            "name": form.name,
            "email": form.email,
            "password_hash": password_hash,
            "created_at": now,
        }

        batch = self.db.batch()
        batch.create(self.email_index.document(self.email_key(form.email)), {"user_id": user_id})
        batch.create(self.collection.document(user_id), user_doc)
        try:
            await run_in_threadpool(batch.commit)
        except AlreadyExists:
            raise EmailTakenError(f"Email {form.email} already registered")
        except STORE_ERRORS as e:
            logger.error(f"Failed to register user: {type(e).__name__}: {e}")
            raise StorageFailureError("Failed to save user") from e

        logger.info(f"User registered: {user_id}")
        return User(
            id=uuid.UUID(user_id),
            name=form.name,
            email=form.email,
            created_at=now,
        )

    async def get_user_by_email(self, email: str) -> dict | None:
        """Get user by email address."""
        query = self.collection.where(filter=FieldFilter("email", "==", email.strip().lower())).limit(1)
        try:
            docs = await run_in_threadpool(list, query.stream())
        except STORE_ERRORS as e:
            logger.error(f"User lookup by email failed: {type(e).__name__}: {e}")
            raise StorageFailureError("Failed to read user") from e

        if not docs:
            return None

        doc = docs[0]
        user_data = doc.to_dict()
        user_data["id"] = doc.id
        return user_data

    async def verify_user_credentials(self, email: str, password: str) -> dict:
        """Verify user credentials and return user data."""
        user = await self.get_user_by_email(email)

        if not user:
            raise InvalidCredentialsError("Invalid email or password")

        password_bytes = password.encode('utf-8')
        if len(password_bytes) > BCRYPT_MAX_PASSWORD_BYTES:
            raise InvalidCredentialsError("Invalid email or password")

        if bcrypt.checkpw(password_bytes, user.get("password_hash", "").encode('utf-8')):
            return user
        else:
            raise InvalidCredentialsError("Invalid email or password")


def get_user_service(db: Client = Depends(get_db)) -> UserService:
    return UserService(db)
