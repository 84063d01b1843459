"""
Newsletter routes.

Public subscribe/unsubscribe and admin management of subscribers and
newsletter sends.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Query, Response, status
from starlette.concurrency import run_in_threadpool
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...db.enums import SubscriberStatus
from ...db.models import Newsletter, NewsletterSubscriber, User
from ..dependencies import get_db, get_mail_sender, require_admin
from ..errors import ConflictError, NotFoundError, UnprocessableError, ValidationFailedError
from ..lookups import get_or_404, like
from ..pagination import Page, PageParams
from ..schemas.newsletters import (
    NewsletterCreate,
    NewsletterOut,
    NewsletterSendRequest,
    SendResult,
    SubscribeRequest,
    SubscriberOut,
    UnsubscribeRequest,
)
from ..services.mailer import MailError, Mailer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/newsletter", tags=["Newsletter"])
admin_router = APIRouter(
    prefix="/api/admin/newsletters",
    tags=["Admin: Newsletters"],
    dependencies=[Depends(require_admin)],
)


@router.post("/subscribe")
async def subscribe(request: SubscribeRequest, response: Response, db: Session = Depends(get_db)):
    """
    Subscribe an email address.

    Returns 201 for a new subscriber, 200 when a previously unsubscribed
    address comes back and 409 when it is already subscribed.
    """
    subscriber = db.query(NewsletterSubscriber).filter(NewsletterSubscriber.email == request.email).first()

    if subscriber is not None:
        if subscriber.status == SubscriberStatus.SUBSCRIBED:
            raise ConflictError("Email is already subscribed")

        subscriber.status = SubscriberStatus.SUBSCRIBED
        subscriber.name = request.name or subscriber.name
        subscriber.subscribed_at = datetime.utcnow()
        subscriber.unsubscribed_at = None
        db.commit()
        return {"message": "Successfully resubscribed to newsletter"}

    db.add(
        NewsletterSubscriber(
            email=request.email,
            name=request.name,
            status=SubscriberStatus.SUBSCRIBED,
            subscribed_at=datetime.utcnow(),
        )
    )
    db.commit()
    logger.info(f"New newsletter subscriber: {request.email}")
    response.status_code = status.HTTP_201_CREATED
    return {"message": "Successfully subscribed to newsletter"}


@router.post("/unsubscribe")
async def unsubscribe(request: UnsubscribeRequest, db: Session = Depends(get_db)):
    subscriber = db.query(NewsletterSubscriber).filter(NewsletterSubscriber.email == request.email).first()
    if subscriber is None:
        raise NotFoundError("Email not found in our newsletter list")

    if subscriber.status != SubscriberStatus.SUBSCRIBED:
        return {"message": "Email is already unsubscribed"}

    subscriber.status = SubscriberStatus.UNSUBSCRIBED
    subscriber.unsubscribed_at = datetime.utcnow()
    db.commit()
    return {"message": "Successfully unsubscribed from newsletter"}


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@admin_router.get("/subscribers")
async def list_subscribers(
    status_filter: Optional[SubscriberStatus] = Query(None, alias="status"),
    q: Optional[str] = Query(None, description="Search email and name"),
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    query = db.query(NewsletterSubscriber)
    if status_filter is not None:
        query = query.filter(NewsletterSubscriber.status == status_filter)
    if q:
        query = query.filter(
            or_(NewsletterSubscriber.email.ilike(like(q)), NewsletterSubscriber.name.ilike(like(q)))
        )
    query = query.order_by(NewsletterSubscriber.created_at.desc(), NewsletterSubscriber.id.desc())
    return page.of(query, SubscriberOut.model_validate)


@admin_router.delete("/subscribers/{subscriber_id}")
async def delete_subscriber(subscriber_id: int, db: Session = Depends(get_db)):
    subscriber = get_or_404(db, NewsletterSubscriber, subscriber_id, "Subscriber not found")
    db.delete(subscriber)
    db.commit()
    return {"message": "Subscriber deleted successfully"}


@admin_router.get("")
async def list_newsletters(
    page: Page = Depends(PageParams()),
    db: Session = Depends(get_db),
):
    query = (
        db.query(Newsletter)
        .options(joinedload(Newsletter.creator))
        .order_by(Newsletter.created_at.desc(), Newsletter.id.desc())
    )
    return page.of(query, NewsletterOut.from_newsletter)


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def create_newsletter(
    request: NewsletterCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    newsletter = Newsletter(subject=request.subject, content=request.content, created_by=admin.id)
    db.add(newsletter)
    db.commit()
    db.refresh(newsletter)
    return {"message": "Newsletter created successfully", "data": NewsletterOut.from_newsletter(newsletter)}


def deliver_newsletter(mailer: Mailer, subject: str, content: str, emails: List[str]) -> Tuple[int, int]:
    """
    Send one message per address.

    Returns:
        (sent, failed) counts
    """
    sent_count = 0
    failed_count = 0
    for email in emails:
        try:
            mailer.send(email, subject, content, html=content)
            sent_count += 1
        except MailError as e:
            logger.error(f"Newsletter email error for {email}: {e}")
            failed_count += 1
    return sent_count, failed_count


@admin_router.post("/{newsletter_id}/send")
async def send_newsletter(
    newsletter_id: int,
    request: Optional[NewsletterSendRequest] = None,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mail_sender),
):
    """
    Mail a newsletter once.

    Goes to the listed subscriber ids that are still subscribed, or to every
    subscribed address when no ids are given. Individual delivery failures
    are counted, not raised.
    """
    newsletter = get_or_404(db, Newsletter, newsletter_id, "Newsletter not found")
    if newsletter.sent_at is not None:
        raise UnprocessableError("Newsletter has already been sent")

    subscriber_ids = request.subscriber_ids if request is not None else None
    query = db.query(NewsletterSubscriber).filter(NewsletterSubscriber.status == SubscriberStatus.SUBSCRIBED)

    if subscriber_ids:
        known = {
            row.id
            for row in db.query(NewsletterSubscriber.id).filter(NewsletterSubscriber.id.in_(subscriber_ids))
        }
        missing = [i for i in subscriber_ids if i not in known]
        if missing:
            raise ValidationFailedError.for_field("subscriber_ids", "The selected subscriber ids is invalid.")
        query = query.filter(NewsletterSubscriber.id.in_(subscriber_ids))

    subscribers = query.all()
    if not subscribers:
        raise UnprocessableError("No subscribers found")

    # Mail delivery blocks, keep it off the event loop
    sent_count, failed_count = await run_in_threadpool(
        deliver_newsletter, mailer, newsletter.subject, newsletter.content, [s.email for s in subscribers]
    )

    newsletter.sent_at = datetime.utcnow()
    newsletter.recipient_count = sent_count
    db.commit()

    logger.info(f"Newsletter {newsletter.id} sent to {sent_count} subscribers ({failed_count} failed)")
    return {
        "message": "Newsletter sent successfully",
        "data": SendResult(recipient_count=sent_count, failed_count=failed_count),
    }


@admin_router.delete("/{newsletter_id}")
async def delete_newsletter(newsletter_id: int, db: Session = Depends(get_db)):
    newsletter = get_or_404(db, Newsletter, newsletter_id, "Newsletter not found")
    db.delete(newsletter)
    db.commit()
    return {"message": "Newsletter deleted successfully"}
