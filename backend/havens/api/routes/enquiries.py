"""Contact and table reservation enquiries."""

import logging

from fastapi import APIRouter, Request, status

from havens.core.exceptions import NotFoundError
from havens.core.rate_limit import limiter
from havens.core.validators import validate_enquiry
from havens.schemas.enquiry import EnquiryAccepted, EnquiryCreate
from havens.services.store import Store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=EnquiryAccepted, status_code=status.HTTP_202_ACCEPTED)
@limiter.limit("5/minute")
def submit_enquiry(request: Request, body: EnquiryCreate, store: Store):
    """Validate and acknowledge an enquiry. Nothing is stored."""
    validate_enquiry(
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        subject=body.subject,
        message=body.message,
        party_size=body.party_size,
        date_time=body.date_time,
        outlet_id=body.outlet_id,
    )
    if body.outlet_id is not None and store.get_outlet(body.outlet_id) is None:
        raise NotFoundError("Outlet", body.outlet_id)
    logger.info(
        f"Enquiry received: {body.subject} from {body.first_name} {body.last_name} "
        f"(outlet {body.outlet_id}, party {body.party_size}, at {body.date_time})"
    )
    return EnquiryAccepted(subject=body.subject)
