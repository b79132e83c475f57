import logging
import os
from google.cloud import firestore
from google.api_core.exceptions import GoogleAPIError
from google.auth.credentials import AnonymousCredentials
from google.auth.exceptions import GoogleAuthError

logger = logging.getLogger(__name__)

# Errors a Firestore call can raise: service errors, and credential refresh or
# transport errors from google-auth.
STORE_ERRORS = (GoogleAPIError, GoogleAuthError)


def get_db() -> firestore.Client:
    """Get Firestore client. Uses emulator if FIRESTORE_EMULATOR_HOST is set."""
    emulator_host = os.getenv("FIRESTORE_EMULATOR_HOST")

    if emulator_host:
        project_id = os.getenv("GCP_PROJECT_ID", "test-project")
        return firestore.Client(project=project_id, credentials=AnonymousCredentials())

    project_id = os.getenv("GCP_PROJECT_ID")
    if project_id:
        return firestore.Client(project=project_id)

    return firestore.Client()


def verify_store_connection(db: firestore.Client | None = None) -> None:
    """Touch the store once. Raises RuntimeError if it cannot be reached."""
    try:
        db = db or get_db()
        list(db.collection("users").limit(1).stream())
    except Exception as e:
        logger.critical(f"Firestore unavailable: {type(e).__name__}: {e}")
        raise RuntimeError("Document store is unavailable, refusing to start") from e
    logger.info("Firestore connection verified")
