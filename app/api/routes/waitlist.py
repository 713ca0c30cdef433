from fastapi import APIRouter, Depends, Form, Query, Request, Response, status

from app.core.rate_limit import CONFIRM, UNSUBSCRIBE, WAITLIST, rate_limit
from app.schemas.waitlist import (
    ConfirmationResponse,
    ErrorResponse,
    RegistrationResponse,
    UnsubscribeResponse,
)
from app.services.waitlist_service import WaitlistService

router = APIRouter(prefix="/api", tags=["Waitlist"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    429: {"model": ErrorResponse, "description": "Too many requests from this client"},
    500: {"model": ErrorResponse, "description": "Service temporarily unavailable"},
}


def get_waitlist_service(request: Request) -> WaitlistService:
    """Return the service owned by the running application."""
    return request.app.state.waitlist_service


def _parse_bool(value: str | None) -> bool:
    return value == "true"


@router.post(
    "/waitlist",
    response_model=RegistrationResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(rate_limit(WAITLIST))],
)
def join_waitlist(
    response: Response,
    email: str | None = Form(None, description="Email address to register"),
    role: str | None = Form(None, description="Optional role, e.g. developer or student"),
    experience: str | None = Form(None, description="beginner, intermediate or advanced"),
    updates: str | None = Form(None, description="'true' to receive product updates"),
    service: WaitlistService = Depends(get_waitlist_service),
) -> RegistrationResponse:
    """Register an email on the waitlist and send the confirmation email.

    Returns 201 for a new signup and 200 when the email was already
    registered (pending or confirmed).
    """
    result, created = service.register(
        email,
        role=role,
        experience=experience,
        updates=_parse_bool(updates),
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return result


@router.get(
    "/confirm",
    response_model=ConfirmationResponse,
    response_model_exclude_none=True,
    responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse}, 410: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limit(CONFIRM))],
)
def confirm_registration(
    token: str | None = Query(None, description="Token from the confirmation email"),
    service: WaitlistService = Depends(get_waitlist_service),
) -> ConfirmationResponse:
    """Confirm a pending signup (double opt-in link target)."""
    return service.confirm(token)


@router.get(
    "/unsubscribe",
    response_model=UnsubscribeResponse,
    responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limit(UNSUBSCRIBE))],
)
def unsubscribe_link(
    email: str | None = Query(None, description="Email address to remove"),
    service: WaitlistService = Depends(get_waitlist_service),
) -> UnsubscribeResponse:
    """Remove an email from the waitlist via the link in our emails."""
    return service.unsubscribe(email)


@router.post(
    "/unsubscribe",
    response_model=UnsubscribeResponse,
    responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limit(UNSUBSCRIBE))],
)
def unsubscribe_form(
    email: str | None = Form(None, description="Email address to remove"),
    service: WaitlistService = Depends(get_waitlist_service),
) -> UnsubscribeResponse:
    """Remove an email from the waitlist via the site's unsubscribe form."""
    return service.unsubscribe(email)
