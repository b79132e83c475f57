import logging
import uuid
from datetime import datetime, timezone

from fastapi import Depends
from google.cloud.firestore import Client
from starlette.concurrency import run_in_threadpool

from healthcheck.classifiers import (
    calculate_bmi,
    classify_blood_pressure,
    classify_bmi,
    classify_spo2,
)
from healthcheck.database import STORE_ERRORS, get_db
from healthcheck.models.measurement import (
    VitalsCheckForm,
    VitalsCheckResult,
    VitalsRecord,
    WeightCheckForm,
    WeightCheckResult,
    WeightRecord,
)

logger = logging.getLogger(__name__)


class MeasurementService:
    """Classifies measurements and appends them to the user's records."""

    WEIGHT_COLLECTION_NAME = "weight_data"
    VITALS_COLLECTION_NAME = "vitals_data"

    def __init__(self, db: Client):
        self.db = db
        self.weight_collection = self.db.collection(self.WEIGHT_COLLECTION_NAME)
        self.vitals_collection = self.db.collection(self.VITALS_COLLECTION_NAME)

    async def _store(self, collection, entry_id: str, entry_doc: dict) -> bool:
        """Best-effort write. Returns False and logs if the store rejects it."""
        try:
            await run_in_threadpool(collection.document(entry_id).set, entry_doc)
        except STORE_ERRORS as e:
            logger.error(f"Failed to save {collection.id} entry for user {entry_doc['user_id']}: {type(e).__name__}: {e}")
            return False
        return True

    async def record_weight(self, user_id: str, form: WeightCheckForm) -> WeightCheckResult:
        """Compute and classify BMI, then store the entry. The result is returned even if storing fails."""
        entry_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)

        bmi = calculate_bmi(form.height, form.weight)
        category = classify_bmi(bmi, form.age)

        entry_doc = {
            "user_id": user_id,
            "name": form.name,
            "age": form.age,
            "height_cm": form.height,
            "weight_kg": form.weight,
            "bmi": bmi,
            "weight_category": category.value,
            "created_at": now,
        }
        stored = await self._store(self.weight_collection, entry_id, entry_doc)

        return WeightCheckResult(
            record=WeightRecord(id=entry_id, **entry_doc),
            stored=stored,
        )

    async def record_vitals(self, user_id: str, form: VitalsCheckForm) -> VitalsCheckResult:
        """Classify blood pressure and SpO2 independently, then store the entry."""
        entry_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)

        entry_doc = {
            "user_id": user_id,
            "name": form.name,
            "age": form.age,
            "systolic": form.systolic,
            "diastolic": form.diastolic,
            "blood_category": classify_blood_pressure(form.systolic, form.diastolic).value,
            "spo2": form.spo2,
            "spo2_category": classify_spo2(form.spo2).value,
            "created_at": now,
        }
        stored = await self._store(self.vitals_collection, entry_id, entry_doc)

        return VitalsCheckResult(
            record=VitalsRecord(id=entry_id, **entry_doc),
            stored=stored,
        )


def get_measurement_service(db: Client = Depends(get_db)) -> MeasurementService:
    return MeasurementService(db)
