"""Contact form submission route (CSRF-protected by middleware)."""

import re
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict

from ...middleware.rate_limit import get_client_ip
from ...utils.logging import get_logger

router = APIRouter(tags=["contact"])
logger = get_logger("api.contact")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_NAME_LENGTH = 2
MIN_MESSAGE_LENGTH = 10


class ContactRequest(BaseModel):
    # The CSRF field travels in the same body; extra keys are ignored
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


class ContactResponse(BaseModel):
    success: bool = True
    message: str
    emailSent: bool = False


def validate_contact(body: ContactRequest) -> None:
    """Raise 400 with a user-facing message on the first invalid field."""
    if not body.name or not body.email or not body.message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nome, email e mensagem são obrigatórios",
        )
    if len(body.name.strip()) < MIN_NAME_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Nome deve ter pelo menos {MIN_NAME_LENGTH} caracteres",
        )
    if not EMAIL_RE.match(body.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email inválido",
        )
    if len(body.message.strip()) < MIN_MESSAGE_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Mensagem deve ter pelo menos {MIN_MESSAGE_LENGTH} caracteres",
        )


@router.post("/contact", response_model=ContactResponse)
async def submit_contact(body: ContactRequest, request: Request):
    """Accept a contact form submission."""
    validate_contact(body)

    logger.info(
        "contact_submission",
        email_domain=body.email.rsplit("@", 1)[-1],
        message_length=len(body.message),
        ip=get_client_ip(request),
    )
    return ContactResponse(
        message="Mensagem registada com sucesso! Entraremos em contacto em breve.",
        emailSent=False,
    )
