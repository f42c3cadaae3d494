from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from applyflow.api.deps import (
    get_assistant,
    get_current_user,
    get_db,
    get_discovery_throttle,
    get_gmail_client,
    get_posting_source,
)
from applyflow.api.schemas import (
    AIRequest,
    ApplicationCreateRequest,
    ApplicationResponse,
    ContactUpdateRequest,
    DiscoverRequest,
    DiscoverResponse,
    EmailSentUpdateRequest,
    JobResponse,
    NotesUpdateRequest,
    SendEmailRequest,
    StatusUpdateRequest,
)
from applyflow.auth import AuthenticatedUser
from applyflow.config import Settings, get_settings
from applyflow.core.discovery import JobDiscoveryService, MissingPreferencesError
from applyflow.core.throttle import DiscoveryThrottle, DiscoveryThrottled
from applyflow.db.repositories import Repository
from applyflow.llm.assistant import OutreachAssistant
from applyflow.llm.providers import UpstreamError
from applyflow.mail.gmail import GmailClient, MailError, ReauthRequiredError
from applyflow.mail.service import MailNotConnectedError, MailService
from applyflow.sources.base import PostingSource
from applyflow.types import JobDescriptor, JobPreferences

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


@router.get("/preferences", response_model=JobPreferences)
def get_preferences(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> JobPreferences:
    preferences = Repository(db).load_preferences(user.id)
    if preferences is None:
        raise HTTPException(status_code=404, detail="Preferences not found")
    return preferences


@router.put("/preferences", response_model=JobPreferences)
def save_preferences(
    payload: JobPreferences,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> JobPreferences:
    Repository(db).save_preferences(user.id, payload)
    return payload


@router.post("/jobs", response_model=DiscoverResponse)
def discover_jobs(
    payload: DiscoverRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    source: PostingSource = Depends(get_posting_source),
    throttle: DiscoveryThrottle = Depends(get_discovery_throttle),
    settings: Settings = Depends(get_settings),
) -> DiscoverResponse:
    service = JobDiscoveryService(
        repo=Repository(db),
        source=source,
        throttle=throttle,
        max_roles=settings.discovery_max_roles,
        default_role=settings.discovery_default_role,
    )
    try:
        result = service.run(user.id, payload.preferences)
    except DiscoveryThrottled as exc:
        raise HTTPException(
            status_code=429,
            detail={"message": str(exc), "wait_seconds": exc.wait_seconds},
            headers={"Retry-After": str(exc.wait_seconds)},
        ) from exc
    except MissingPreferencesError as exc:
        raise HTTPException(status_code=400, detail="Preferences are required") from exc
    except Exception as exc:
        logger.exception("Job discovery failed user_id=%s", user.id)
        raise HTTPException(status_code=500, detail=str(exc) or "Internal server error") from exc

    return DiscoverResponse.from_result(result, message="Jobs discovered successfully")


@router.get("/jobs", response_model=list[JobResponse])
def list_jobs(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[JobResponse]:
    return [JobResponse.model_validate(row) for row in Repository(db).list_jobs(user.id)]


@router.delete("/jobs/{job_id}", status_code=204)
def delete_job(
    job_id: int,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    try:
        Repository(db).delete_job(user.id, job_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@router.get("/applications", response_model=list[ApplicationResponse])
def list_applications(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ApplicationResponse]:
    return [ApplicationResponse.model_validate(row) for row in Repository(db).list_applications(user.id)]


@router.post("/applications", response_model=ApplicationResponse)
def create_application(
    payload: ApplicationCreateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApplicationResponse:
    try:
        application = Repository(db).create_application(user.id, payload.job_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ApplicationResponse.model_validate(application)


@router.patch("/applications/{application_id}/status", response_model=ApplicationResponse)
def update_application_status(
    application_id: int,
    payload: StatusUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApplicationResponse:
    try:
        application = Repository(db).update_application_status(user.id, application_id, payload.status)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ApplicationResponse.model_validate(application)


@router.patch("/applications/{application_id}/email-sent", response_model=ApplicationResponse)
def update_application_email_sent(
    application_id: int,
    payload: EmailSentUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApplicationResponse:
    try:
        application = Repository(db).set_application_email_sent(user.id, application_id, payload.email_sent)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ApplicationResponse.model_validate(application)


@router.patch("/applications/{application_id}/notes", response_model=ApplicationResponse)
def update_application_notes(
    application_id: int,
    payload: NotesUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApplicationResponse:
    try:
        application = Repository(db).update_application_notes(user.id, application_id, payload.notes)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ApplicationResponse.model_validate(application)


@router.patch("/applications/{application_id}/contact", response_model=ApplicationResponse)
def update_application_contact(
    application_id: int,
    payload: ContactUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApplicationResponse:
    try:
        application = Repository(db).update_application_contact(
            user.id,
            application_id,
            contact_name=payload.contact_name,
            contact_email=payload.contact_email,
        )
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ApplicationResponse.model_validate(application)


@router.delete("/applications/{application_id}", status_code=204)
def delete_application(
    application_id: int,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    try:
        Repository(db).delete_application(user.id, application_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@router.post("/ai")
def run_ai_action(
    payload: AIRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    assistant: OutreachAssistant = Depends(get_assistant),
) -> dict:
    try:
        if payload.action == "find_contacts":
            if payload.job is None:
                raise HTTPException(status_code=400, detail="Job data is required")
            result = assistant.find_contacts(payload.job)
        elif payload.action == "generate_email":
            result = assistant.generate_email(
                payload.job or JobDescriptor(),
                contact=payload.contact,
                resume_text=payload.resume_text,
                email_type=payload.email_type,
            )
        elif payload.action == "score_resume":
            job_description = payload.job.description if payload.job else ""
            if not payload.resume_text or not job_description:
                raise HTTPException(status_code=400, detail="Resume and job description are required")
            result = assistant.score_resume(resume_text=payload.resume_text, job_description=job_description)
        else:
            raise HTTPException(status_code=400, detail=f"Unknown action: {payload.action}")
    except UpstreamError as exc:
        logger.warning("AI action failed action=%s user_id=%s error=%s", payload.action, user.id, exc)
        raise HTTPException(status_code=502, detail=str(exc) or "AI processing failed") from exc

    return result.model_dump(by_alias=True)


@router.get("/email")
def gmail_oauth_callback(
    code: str | None = None,
    state: str = "",
    db: Session = Depends(get_db),
    client: GmailClient = Depends(get_gmail_client),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    base_url = settings.app_base_url.rstrip("/")
    if not code:
        return RedirectResponse(f"{base_url}/?gmail=error", status_code=302)

    service = MailService(repo=Repository(db), client=client, settings=settings)
    outcome = "connected" if service.complete_authorization(code=code, state=state) else "error"
    return RedirectResponse(f"{base_url}/?gmail={outcome}", status_code=302)


@router.post("/email")
def send_email(
    payload: SendEmailRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: GmailClient = Depends(get_gmail_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    if not payload.to or not payload.subject or not payload.body:
        raise HTTPException(status_code=400, detail="Missing required fields: to, subject, body")

    service = MailService(repo=Repository(db), client=client, settings=settings)
    try:
        message_id = service.send(
            user_id=user.id,
            sender=user.email,
            to=payload.to,
            cc=payload.cc,
            subject=payload.subject,
            body=payload.body,
            application_id=payload.application_id,
        )
    except MailNotConnectedError as exc:
        raise HTTPException(
            status_code=403,
            detail={"message": str(exc), "auth_url": exc.auth_url, "requires_auth": True},
        ) from exc
    except ReauthRequiredError as exc:
        raise HTTPException(
            status_code=403,
            detail={"message": str(exc), "requires_reauth": True},
        ) from exc
    except MailError as exc:
        logger.warning("Email sending failed user_id=%s error=%s", user.id, exc)
        raise HTTPException(status_code=502, detail=str(exc) or "Failed to send email") from exc

    return {"message": "Email sent successfully", "id": message_id}
