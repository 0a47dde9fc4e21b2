"""Admin API routes for environment variables, settings screens and email templates."""

from typing import List

from fastapi import APIRouter, Depends, Request

from adminpanel.application.services.email_templates import list_templates, render_preview
from adminpanel.application.services.settings_service import (
    delete_environment_variable,
    get_auth_settings,
    get_email_settings,
    list_environment,
    send_test_email,
    update_auth_settings,
    update_email_settings,
    update_environment_variable,
)
from adminpanel.core.rate_limit import limiter, rate_limit
from adminpanel.domain.models.user import User
from adminpanel.domain.schemas.settings import (
    AuthSettings,
    EmailSettings,
    EmailTemplateInfo,
    EmailTemplatePreview,
    EnvironmentDelete,
    EnvironmentListing,
    EnvironmentUpdate,
    EmailTestRequest,
)
from adminpanel.infrastructure.environment import DotEnvStore
from adminpanel.interfaces.api.deps import require_admin
from adminpanel.interfaces.deps import get_environment_store

router = APIRouter(prefix="/api/admin", tags=["Admin Settings"])


@router.get("/environment", response_model=EnvironmentListing)
def get_environment(
    store: DotEnvStore = Depends(get_environment_store),
    admin: User = Depends(require_admin),
):
    return list_environment(store)


@router.put("/environment")
@limiter.limit(rate_limit("admin"))
def put_environment(
    request: Request,
    body: EnvironmentUpdate,
    store: DotEnvStore = Depends(get_environment_store),
    admin: User = Depends(require_admin),
):
    return update_environment_variable(store, body.key, body.value)


@router.delete("/environment")
@limiter.limit(rate_limit("admin"))
def delete_environment(
    request: Request,
    body: EnvironmentDelete,
    store: DotEnvStore = Depends(get_environment_store),
    admin: User = Depends(require_admin),
):
    return delete_environment_variable(store, body.key)


@router.get("/settings/auth", response_model=AuthSettings)
def read_auth_settings(
    store: DotEnvStore = Depends(get_environment_store),
    admin: User = Depends(require_admin),
):
    return get_auth_settings(store)


@router.put("/settings/auth")
def write_auth_settings(
    body: AuthSettings,
    store: DotEnvStore = Depends(get_environment_store),
    admin: User = Depends(require_admin),
):
    return update_auth_settings(store, body)


@router.get("/settings/email", response_model=EmailSettings)
def read_email_settings(
    store: DotEnvStore = Depends(get_environment_store),
    admin: User = Depends(require_admin),
):
    return get_email_settings(store)


@router.put("/settings/email")
def write_email_settings(
    body: EmailSettings,
    store: DotEnvStore = Depends(get_environment_store),
    admin: User = Depends(require_admin),
):
    return update_email_settings(store, body)


@router.post("/settings/email/test")
@limiter.limit(rate_limit("admin"))
def send_settings_test_email(
    request: Request,
    body: EmailTestRequest,
    admin: User = Depends(require_admin),
):
    return send_test_email(body.to)


@router.get("/email-templates", response_model=List[EmailTemplateInfo])
def get_email_templates(admin: User = Depends(require_admin)):
    return list_templates()


@router.get("/email-templates/{template_id}/preview", response_model=EmailTemplatePreview)
def preview_email_template(template_id: str, admin: User = Depends(require_admin)):
    return render_preview(template_id)
