"""
Contact form route.
"""

import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from ..config import get_settings
from ..dependencies import get_mail_sender
from ..errors import APIError
from ..schemas.site import ContactRequest
from ..services.mailer import MailError, Mailer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contact", tags=["Contact"])


def contact_message(request: ContactRequest) -> str:
    return (
        f"New contact form submission\n\n"
        f"Name: {request.firstName} {request.lastName}\n"
        f"Email: {request.email}\n\n"
        f"{request.message}\n"
    )


@router.post("")
async def send_contact_message(request: ContactRequest, mailer: Mailer = Depends(get_mail_sender)):
    """Forward a contact form submission to CONTACT_EMAIL (reply-to the sender)."""
    settings = get_settings()
    recipient = settings.contact_email or settings.mail_from
    if not recipient:
        logger.error("Contact form: no recipient email configured")
        raise APIError("Email configuration error. Please contact the administrator.", status_code=500)

    try:
        await run_in_threadpool(
            mailer.send,
            recipient,
            f"Contact form: {request.firstName} {request.lastName}",
            contact_message(request),
            reply_to=request.email,
        )
    except MailError as e:
        logger.error(f"Contact form email error: {e}")
        raise APIError(
            "Failed to send message. Please try again later or contact us directly.",
            status_code=500,
        ) from e

    logger.info(f"Contact form email sent to {recipient} from {request.email}")
    return {"message": "Message sent successfully! We'll get back to you soon."}
