"""Tests for the contact form endpoint (validation behind CSRF)."""

import pytest
from fastapi import HTTPException

from lofersil.api.routes.contact import ContactRequest, validate_contact

VALID = {
    "name": "Maria Silva",
    "email": "maria@example.pt",
    "message": "Gostaria de saber mais sobre os vossos serviços.",
}


class TestValidateContact:
    def test_valid_submission(self):
        validate_contact(ContactRequest(**VALID))

    @pytest.mark.parametrize("missing", ["name", "email", "message"])
    def test_required_fields(self, missing):
        data = {**VALID, missing: ""}
        with pytest.raises(HTTPException) as exc_info:
            validate_contact(ContactRequest(**data))
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Nome, email e mensagem são obrigatórios"

    def test_short_name(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_contact(ContactRequest(**{**VALID, "name": "A"}))
        assert "Nome deve ter pelo menos 2 caracteres" == exc_info.value.detail

    @pytest.mark.parametrize("email", ["maria", "maria@", "maria@example", "ma ria@example.pt"])
    def test_invalid_email(self, email):
        with pytest.raises(HTTPException) as exc_info:
            validate_contact(ContactRequest(**{**VALID, "email": email}))
        assert exc_info.value.detail == "Email inválido"

    def test_short_message(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_contact(ContactRequest(**{**VALID, "message": "Olá"}))
        assert exc_info.value.detail == "Mensagem deve ter pelo menos 10 caracteres"

    def test_extra_fields_ignored(self):
        body = ContactRequest(**VALID, csrf_token="abc")
        assert not hasattr(body, "csrf_token")


class TestContactEndpoint:
    @pytest.mark.asyncio
    async def test_accepted(self, client, issued):
        resp = await client.post("/api/contact", json={**VALID, "csrf_token": issued})
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "message": "Mensagem registada com sucesso! Entraremos em contacto em breve.",
            "emailSent": False,
        }

    @pytest.mark.asyncio
    async def test_validation_error_shape(self, client, issued):
        resp = await client.post(
            "/api/contact",
            json={**VALID, "email": "not-an-email", "csrf_token": issued},
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Email inválido"
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_validation_failure_still_consumes_token(self, client, app, issued):
        await client.post("/api/contact", json={**VALID, "name": "", "csrf_token": issued})
        assert app.state.csrf_service.get_stats().active_tokens == 0

    @pytest.mark.asyncio
    async def test_wrong_types_rejected(self, client, issued):
        resp = await client.post(
            "/api/contact",
            json={"name": ["x"], "email": VALID["email"], "message": VALID["message"], "csrf_token": issued},
        )
        assert resp.status_code == 422
        assert resp.json()["error"] == "Validation error"
