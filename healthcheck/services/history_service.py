import logging
from datetime import datetime, timezone

from fastapi import Depends
from google.cloud.firestore import Client, Query
from google.cloud.firestore_v1.base_query import FieldFilter
from starlette.concurrency import run_in_threadpool

from healthcheck.database import STORE_ERRORS, get_db
from healthcheck.models.measurement import MeasurementHistory, VitalsRecord, WeightRecord
from healthcheck.services.measurement_service import MeasurementService

logger = logging.getLogger(__name__)


class HistoryService:
    """Service for reading a user's past measurements."""

    def __init__(self, db: Client):
        self.db = db
        self.weight_collection = self.db.collection(MeasurementService.WEIGHT_COLLECTION_NAME)
        self.vitals_collection = self.db.collection(MeasurementService.VITALS_COLLECTION_NAME)

    @staticmethod
    def _doc_to_dict(doc) -> dict:
        data = doc.to_dict()
        data["id"] = doc.id

        created_at = data.get("created_at")
        if isinstance(created_at, datetime) and created_at.tzinfo is None:
            data["created_at"] = created_at.replace(tzinfo=timezone.utc)
        return data

    async def _newest_first(self, collection, user_id: str) -> list[dict]:
        query = (
            collection
            .where(filter=FieldFilter("user_id", "==", user_id))
            .order_by("created_at", direction=Query.DESCENDING)
        )
        docs = await run_in_threadpool(list, query.stream())
        return [self._doc_to_dict(doc) for doc in docs]

    async def list_history(self, user_id: str) -> MeasurementHistory:
        """
        Get both record lists, newest first.

        Each query fails on its own: a store error leaves that list empty and
        sets its *_failed flag, while the other list is still returned.
        """
        history = MeasurementHistory()

        try:
            history.weight_records = [
                WeightRecord(**data) for data in await self._newest_first(self.weight_collection, user_id)
            ]
        except STORE_ERRORS as e:
            logger.error(f"Failed to read weight history for user {user_id}: {type(e).__name__}: {e}")
            history.weight_failed = True

        try:
            history.vitals_records = [
                VitalsRecord(**data) for data in await self._newest_first(self.vitals_collection, user_id)
            ]
        except STORE_ERRORS as e:
            logger.error(f"Failed to read vitals history for user {user_id}: {type(e).__name__}: {e}")
            history.vitals_failed = True

        return history


def get_history_service(db: Client = Depends(get_db)) -> HistoryService:
    return HistoryService(db)
