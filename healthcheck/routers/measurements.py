"""
Weight, vitals and history pages.
Every route requires a session; records are always written for and read by the
authenticated user only.
"""
from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError

from healthcheck.dependencies import get_auth_context
from healthcheck.models.measurement import VitalsCheckForm, WeightCheckForm
from healthcheck.models.user import AuthContext
from healthcheck.services.history_service import HistoryService, get_history_service
from healthcheck.services.measurement_service import MeasurementService, get_measurement_service
from healthcheck.templating import error_messages, render

measurement_router = APIRouter(tags=["measurements"])

SAVE_FAILED_MESSAGE = "Failed to save data"


@measurement_router.get("/check-weight")
async def check_weight_page(request: Request, auth: AuthContext = Depends(get_auth_context)):
    return render(request, "check_weight.html", {"form": {"name": auth.user_name}})


@measurement_router.post("/check-weight")
async def check_weight(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    measurement_service: MeasurementService = Depends(get_measurement_service)
):
    """
    Classify BMI and store the entry.

    The computed result is shown even when storing it failed.
    """
    form_data = dict(await request.form())
    try:
        form = WeightCheckForm.model_validate(form_data)
    except ValidationError as e:
        return render(
            request, "check_weight.html",
            {"errors": error_messages(e), "form": form_data},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    result = await measurement_service.record_weight(auth.user_id, form)
    errors = [] if result.stored else [{"msg": SAVE_FAILED_MESSAGE}]
    return render(request, "result_weight.html", {"record": result.record, "errors": errors})


@measurement_router.get("/check-vitals")
async def check_vitals_page(request: Request, auth: AuthContext = Depends(get_auth_context)):
    return render(request, "check_vitals.html", {"form": {"name": auth.user_name}})


@measurement_router.post("/check-vitals")
async def check_vitals(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    measurement_service: MeasurementService = Depends(get_measurement_service)
):
    """Classify blood pressure and SpO2 and store the entry."""
    form_data = dict(await request.form())
    try:
        form = VitalsCheckForm.model_validate(form_data)
    except ValidationError as e:
        return render(
            request, "check_vitals.html",
            {"errors": error_messages(e), "form": form_data},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    result = await measurement_service.record_vitals(auth.user_id, form)
    errors = [] if result.stored else [{"msg": SAVE_FAILED_MESSAGE}]
    return render(request, "result_vitals.html", {"record": result.record, "errors": errors})


@measurement_router.get("/history")
async def history(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    history_service: HistoryService = Depends(get_history_service)
):
    """Weight and vitals history of the authenticated user, newest first."""
    result = await history_service.list_history(auth.user_id)

    errors = []
    if result.weight_failed:
        errors.append({"msg": "Failed to load weight history"})
    if result.vitals_failed:
        errors.append({"msg": "Failed to load vitals history"})

    return render(request, "history.html", {"history": result, "errors": errors})
