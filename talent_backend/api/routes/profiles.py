"""
FastAPI router for profiles and questionnaire responses.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from talent_backend.database import get_db
from talent_backend.infrastructure.container import get_container
from talent_backend.schemas import (
    ProfilePayload,
    ProfileResponse,
    QuestionnaireDocument,
    QuestionnaireResponsesRequest,
    SaveResponsesResult,
)
from talent_backend.services.exceptions import (
    DuplicateProfileError,
    MalformedPayloadError,
    PersistenceError,
    ProfileNotFoundError,
    ProfileServiceError,
)
from talent_backend.services.external.auth_middleware import get_current_subject
from talent_backend.services.profile_reconciler import ProfileReconciler
from talent_backend.utils.structured_logger import (
    request_end,
    request_error,
    request_start,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Profiles"])


def get_profile_reconciler(db: Session = Depends(get_db)) -> ProfileReconciler:
    return get_container().get_profile_reconciler(db)


def _status_for(error: ProfileServiceError) -> int:
    if isinstance(error, ProfileNotFoundError):
        return 404
    if isinstance(error, MalformedPayloadError):
        return 422
    if isinstance(error, DuplicateProfileError):
        return 409
    if isinstance(error, PersistenceError):
        return 503
    return 500


def _raise_http(endpoint: str, start: float, subject_id: str, error: ProfileServiceError):
    http_status = _status_for(error)
    request_error(
        endpoint,
        start,
        user_id=subject_id,
        http_status=http_status,
        error=str(error),
        error_type=type(error).__name__,
    )
    raise HTTPException(status_code=http_status, detail=str(error)) from error


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    subject_id: str = Depends(get_current_subject),
    reconciler: ProfileReconciler = Depends(get_profile_reconciler),
) -> Dict[str, Any]:
    """
    Get the authenticated subject's profile with acting fields flattened onto it.
    """
    endpoint = "GET /api/profile"
    start = request_start(endpoint, user_id=subject_id)
    try:
        profile = reconciler.get_profile(subject_id)
    except ProfileServiceError as e:
        _raise_http(endpoint, start, subject_id, e)

    if profile is None:
        request_end(endpoint, start, user_id=subject_id, http_status=404)
        raise HTTPException(status_code=404, detail="Profile not found")

    request_end(endpoint, start, user_id=subject_id)
    return profile


@router.post("/profile", response_model=ProfileResponse)
def create_profile(
    payload: ProfilePayload,
    subject_id: str = Depends(get_current_subject),
    reconciler: ProfileReconciler = Depends(get_profile_reconciler),
) -> Dict[str, Any]:
    """
    Create the authenticated subject's profile; merges into it if it already exists.
    """
    endpoint = "POST /api/profile"
    start = request_start(endpoint, user_id=subject_id)
    try:
        profile = reconciler.create_profile(subject_id, payload.to_payload())
    except ProfileServiceError as e:
        _raise_http(endpoint, start, subject_id, e)

    request_end(endpoint, start, user_id=subject_id)
    return profile


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    payload: ProfilePayload,
    subject_id: str = Depends(get_current_subject),
    reconciler: ProfileReconciler = Depends(get_profile_reconciler),
) -> Dict[str, Any]:
    """
    Merge the supplied fields into the authenticated subject's profile.
    """
    endpoint = "PUT /api/profile"
    start = request_start(endpoint, user_id=subject_id)
    try:
        profile = reconciler.update_profile(subject_id, payload.to_payload())
    except ProfileServiceError as e:
        _raise_http(endpoint, start, subject_id, e)

    request_end(endpoint, start, user_id=subject_id)
    return profile


@router.get("/questionnaire/responses/my", response_model=QuestionnaireDocument)
def get_my_questionnaire_responses(
    subject_id: str = Depends(get_current_subject),
    reconciler: ProfileReconciler = Depends(get_profile_reconciler),
) -> Dict[str, Any]:
    endpoint = "GET /api/questionnaire/responses/my"
    start = request_start(endpoint, user_id=subject_id)
    try:
        responses = reconciler.get_questionnaire_responses(subject_id)
    except ProfileServiceError as e:
        _raise_http(endpoint, start, subject_id, e)

    request_end(endpoint, start, user_id=subject_id, namespaces=len(responses))
    return responses


@router.post("/questionnaire/responses", response_model=SaveResponsesResult)
def save_questionnaire_responses(
    request: QuestionnaireResponsesRequest,
    subject_id: str = Depends(get_current_subject),
    reconciler: ProfileReconciler = Depends(get_profile_reconciler),
) -> SaveResponsesResult:
    """
    Save questionnaire responses; the first save creates the profile.
    """
    endpoint = "POST /api/questionnaire/responses"
    start = request_start(endpoint, user_id=subject_id)
    try:
        reconciler.save_questionnaire_responses(subject_id, request.responses)
    except ProfileServiceError as e:
        _raise_http(endpoint, start, subject_id, e)

    request_end(endpoint, start, user_id=subject_id)
    return SaveResponsesResult()
