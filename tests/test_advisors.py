"""
Integration tests for the advisor lifecycle API
"""

import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient
from sqlalchemy import DateTime, update
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, select

from app.core.config import Settings
from app.core.exceptions import StoreError
from app.models.advisor import Advisor, AdvisorRenewal
from app.schemas.advisor import AdvisorCreate
from app.services.advisors import MAX_RENEW_ATTEMPTS, AdvisorService


def parse_dt(value: str) -> datetime:
    return datetime.fromisoformat(value)


async def get_listed(client: AsyncClient, slug: str) -> dict:
    response = await client.get("/api/asesores")
    assert response.status_code == 200
    return next(a for a in response.json() if a["url_slug"] == slug)


class TestCreateAdvisor:

    @pytest.mark.asyncio
    async def test_create_initializes_record(self, client, advisor_payload, clock):
        response = await client.post("/api/asesores/crear", json=advisor_payload)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        asesor = body["asesor"]
        assert asesor["url_slug"] == "juan-perez"
        assert asesor["url"] == "https://landing.test/juan-perez"
        assert asesor["estado"] == "activo"
        assert asesor["accesos_total"] == 0
        assert asesor["cotizaciones_generadas"] == 0
        assert asesor["clientes_unicos"] == []
        assert asesor["renovaciones"] == []
        assert asesor["ultimo_acceso"] is None
        assert asesor["fecha_cancelacion"] is None
        assert asesor["dias_pagados"] == 30
        assert parse_dt(asesor["fecha_inicio"]) == clock.now
        assert parse_dt(asesor["fecha_expiracion"]) == clock.now + timedelta(days=30)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["nombre", "email", "telefono", "empresa", "dias_pagados"])
    async def test_create_requires_all_fields(self, client, advisor_payload, missing):
        del advisor_payload[missing]

        response = await client.post("/api/asesores/crear", json=advisor_payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Faltan datos requeridos"

    @pytest.mark.asyncio
    async def test_create_rejects_blank_name(self, client, advisor_payload):
        advisor_payload["nombre"] = "   "
        response = await client.post("/api/asesores/crear", json=advisor_payload)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_rejects_non_numeric_days(self, client, advisor_payload):
        advisor_payload["dias_pagados"] = "treinta"

        response = await client.post("/api/asesores/crear", json=advisor_payload)

        assert response.status_code == 400
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_create_accepts_numeric_string_days(self, client, advisor_payload):
        advisor_payload["dias_pagados"] = "15"
        response = await client.post("/api/asesores/crear", json=advisor_payload)
        assert response.status_code == 200
        assert response.json()["asesor"]["dias_pagados"] == 15

    @pytest.mark.asyncio
    async def test_list_returns_all_advisors(self, client, advisor_payload, clock):
        await client.post("/api/asesores/crear", json=advisor_payload)
        clock.advance(minutes=1)
        await client.post("/api/asesores/crear", json={**advisor_payload, "nombre": "Ana Soto"})

        response = await client.get("/api/asesores")

        assert response.status_code == 200
        slugs = [a["url_slug"] for a in response.json()]
        assert slugs == ["juan-perez", "ana-soto"]
        assert all(isinstance(a["clientes_unicos"], list) for a in response.json())


class TestValidateAdvisor:

    @pytest.mark.asyncio
    async def test_valid_advisor_returns_public_view(self, client, created_advisor):
        response = await client.get(f"/api/asesores/{created_advisor['url_slug']}")

        assert response.status_code == 200
        assert response.json() == {
            "valid": True,
            "asesor": {
                "nombre": "Juan Pérez",
                "email": "juan@example.com",
                "telefono": "+56911112222",
                "empresa": "Colmena",
            },
        }

    @pytest.mark.asyncio
    async def test_unknown_slug_is_soft_invalid(self, client):
        response = await client.get("/api/asesores/nadie")

        assert response.status_code == 200
        assert response.json() == {"valid": False, "error": "Asesor no encontrado"}

    @pytest.mark.asyncio
    async def test_expired_is_invalid_regardless_of_status(self, client, created_advisor, clock):
        clock.advance(days=31)

        response = await client.get(f"/api/asesores/{created_advisor['url_slug']}")

        assert response.json() == {"valid": False, "error": "Acceso expirado"}

    @pytest.mark.asyncio
    async def test_suspended_is_invalid(self, client, created_advisor):
        slug = created_advisor["url_slug"]

        response = await client.post(f"/api/asesores/{slug}/suspender")
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = await client.get(f"/api/asesores/{slug}")
        assert response.json() == {"valid": False, "error": "Acceso suspendido"}

        await client.post(f"/api/asesores/{slug}/activar")
        response = await client.get(f"/api/asesores/{slug}")
        assert response.json()["valid"] is True


class TestStatusActions:

    @pytest.mark.asyncio
    async def test_revoke_stamps_cancellation_with_default_reason(self, client, created_advisor, clock):
        slug = created_advisor["url_slug"]

        response = await client.post(f"/api/asesores/{slug}/revocar")

        assert response.status_code == 200
        assert response.json()["success"] is True
        listed = await get_listed(client, slug)
        assert listed["estado"] == "revocado"
        assert parse_dt(listed["fecha_cancelacion"]) == clock.now
        assert listed["razon_cancelacion"] == "Revocado por administrador"

        response = await client.get(f"/api/asesores/{slug}")
        assert response.json() == {"valid": False, "error": "Acceso revocado"}

    @pytest.mark.asyncio
    async def test_revoke_with_reason(self, client, created_advisor):
        slug = created_advisor["url_slug"]

        await client.post(f"/api/asesores/{slug}/revocar", json={"razon": "Falta de pago"})

        listed = await get_listed(client, slug)
        assert listed["razon_cancelacion"] == "Falta de pago"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["suspender", "activar", "revocar"])
    async def test_status_action_on_unknown_slug_is_404(self, client, action):
        response = await client.post(f"/api/asesores/nadie/{action}")

        assert response.status_code == 404
        assert response.json() == {"error": "Asesor no encontrado"}


class TestRenewAdvisor:

    @pytest.mark.asyncio
    async def test_renew_is_additive_to_current_expiration(self, client, created_advisor, clock):
        slug = created_advisor["url_slug"]
        expiration = parse_dt(created_advisor["fecha_expiracion"])

        response = await client.post(f"/api/asesores/{slug}/renovar", json={"dias": 15})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert parse_dt(body["nueva_expiracion"]) == expiration + timedelta(days=15)

        listed = await get_listed(client, slug)
        assert parse_dt(listed["fecha_expiracion"]) == expiration + timedelta(days=15)
        assert len(listed["renovaciones"]) == 1
        renewal = listed["renovaciones"][0]
        assert renewal["dias"] == 15
        assert parse_dt(renewal["fecha"]) == clock.now
        assert parse_dt(renewal["nueva_expiracion"]) == expiration + timedelta(days=15)

    @pytest.mark.asyncio
    async def test_renewals_accumulate(self, client, created_advisor):
        slug = created_advisor["url_slug"]
        expiration = parse_dt(created_advisor["fecha_expiracion"])

        await client.post(f"/api/asesores/{slug}/renovar", json={"dias": 10})
        response = await client.post(f"/api/asesores/{slug}/renovar", json={"dias": 5})

        assert parse_dt(response.json()["nueva_expiracion"]) == expiration + timedelta(days=15)
        listed = await get_listed(client, slug)
        assert [r["dias"] for r in listed["renovaciones"]] == [10, 5]

    @pytest.mark.asyncio
    async def test_renew_reactivates_revoked_advisor(self, client, created_advisor):
        slug = created_advisor["url_slug"]
        await client.post(f"/api/asesores/{slug}/revocar", json={"razon": "Falta de pago"})

        await client.post(f"/api/asesores/{slug}/renovar", json={"dias": 30})

        listed = await get_listed(client, slug)
        assert listed["estado"] == "activo"
        assert listed["fecha_cancelacion"] is None
        assert listed["razon_cancelacion"] is None
        response = await client.get(f"/api/asesores/{slug}")
        assert response.json()["valid"] is True

    @pytest.mark.asyncio
    async def test_renew_after_expiry_extends_from_old_expiration(self, client, created_advisor, clock):
        slug = created_advisor["url_slug"]
        clock.advance(days=40)

        await client.post(f"/api/asesores/{slug}/renovar", json={"dias": 5})

        # 30 + 5 days from creation is still in the past
        response = await client.get(f"/api/asesores/{slug}")
        assert response.json() == {"valid": False, "error": "Acceso expirado"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"dias": 0}, {"dias": -3}])
    async def test_renew_requires_positive_days(self, client, created_advisor, body):
        response = await client.post(f"/api/asesores/{created_advisor['url_slug']}/renovar", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Especifica días"

    @pytest.mark.asyncio
    async def test_renew_rejects_non_numeric_days(self, client, created_advisor):
        response = await client.post(
            f"/api/asesores/{created_advisor['url_slug']}/renovar", json={"dias": "muchos"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_renew_unknown_slug_is_404(self, client):
        response = await client.post("/api/asesores/nadie/renovar", json={"dias": 10})

        assert response.status_code == 404
        assert response.json() == {"error": "Asesor no encontrado"}


@pytest.mark.asyncio
async def test_paid_window_end_to_end(client, advisor_payload, clock):
    """Create with 30 paid days, valid now, invalid once the window has passed"""
    created = await client.post("/api/asesores/crear", json=advisor_payload)
    slug = created.json()["asesor"]["url_slug"]

    response = await client.get(f"/api/asesores/{slug}")
    assert response.json()["valid"] is True

    clock.advance(days=29, hours=23)
    response = await client.get(f"/api/asesores/{slug}")
    assert response.json()["valid"] is True

    clock.advance(days=1, hours=2)
    response = await client.get(f"/api/asesores/{slug}")
    assert response.json() == {"valid": False, "error": "Acceso expirado"}


class TestDayLimits:

    @pytest.mark.asyncio
    async def test_create_rejects_days_past_calendar_range(self, client, advisor_payload):
        advisor_payload["dias_pagados"] = 3000000

        response = await client.post("/api/asesores/crear", json=advisor_payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Faltan datos requeridos"

    @pytest.mark.asyncio
    async def test_create_accepts_maximum_days(self, client, advisor_payload):
        advisor_payload["dias_pagados"] = 36500
        response = await client.post("/api/asesores/crear", json=advisor_payload)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_renew_rejects_days_past_calendar_range(self, client, created_advisor):
        response = await client.post(
            f"/api/asesores/{created_advisor['url_slug']}/renovar", json={"dias": 3000000}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Especifica días"

    @pytest.mark.asyncio
    async def test_renew_overflowing_expiration_is_400(self, client, created_advisor, session):
        slug = created_advisor["url_slug"]
        await session.execute(
            update(Advisor).where(Advisor.slug == slug).values(expires_at=datetime(9990, 1, 1))
        )
        await session.commit()

        response = await client.post(f"/api/asesores/{slug}/renovar", json={"dias": 36500})

        assert response.status_code == 400
        assert "detalle" in response.json()


class TestStoredTimestamps:

    def test_datetime_columns_are_naive(self):
        columns = [
            column
            for table in SQLModel.metadata.tables.values()
            for column in table.columns
            if isinstance(column.type, DateTime)
        ]
        assert columns
        assert all(column.type.timezone is False for column in columns)

    @pytest.mark.asyncio
    async def test_timestamps_round_trip_as_naive_utc(self, session, clock, advisor_payload):
        service = AdvisorService(session, Settings(), clock)
        await service.create(AdvisorCreate(**advisor_payload))
        session.expunge_all()

        advisor = (await session.exec(select(Advisor))).one()

        assert advisor.started_at == clock.now
        assert advisor.expires_at == clock.now + timedelta(days=30)
        assert advisor.expires_at.tzinfo is None


class TestConcurrentRenewal:

    @pytest.mark.asyncio
    async def test_renew_retries_after_version_changes(self, session, clock, advisor_payload, monkeypatch):
        service = AdvisorService(session, Settings(), clock)
        created = await service.create(AdvisorCreate(**advisor_payload))
        read_versions = []
        original_get = service.get_by_slug

        async def read_then_concurrent_bump(slug):
            advisor = await original_get(slug)
            read_versions.append(advisor.version)
            if len(read_versions) == 1:
                # Another writer renews between our read and our write
                await session.execute(
                    update(Advisor)
                    .where(Advisor.id == advisor.id)
                    .values(version=Advisor.version + 1)
                    .execution_options(synchronize_session=False)
                )
            return advisor

        monkeypatch.setattr(service, "get_by_slug", read_then_concurrent_bump)

        new_expiration = await service.renew(created.url_slug, 10)

        assert len(read_versions) == 2
        assert new_expiration == created.fecha_expiracion + timedelta(days=10)
        renewals = (await session.exec(select(AdvisorRenewal))).all()
        assert len(renewals) == 1

    @pytest.mark.asyncio
    async def test_renew_gives_up_after_repeated_conflicts(self, session, clock, advisor_payload, monkeypatch):
        service = AdvisorService(session, Settings(), clock)
        created = await service.create(AdvisorCreate(**advisor_payload))
        reads = []
        original_get = service.get_by_slug

        async def always_outraced(slug):
            advisor = await original_get(slug)
            reads.append(slug)
            await session.execute(
                update(Advisor)
                .where(Advisor.id == advisor.id)
                .values(version=Advisor.version + 1)
                .execution_options(synchronize_session=False)
            )
            return advisor

        monkeypatch.setattr(service, "get_by_slug", always_outraced)

        with pytest.raises(StoreError) as exc_info:
            await service.renew(created.url_slug, 10)

        assert exc_info.value.status_code == 500
        assert len(reads) == MAX_RENEW_ATTEMPTS
        assert (await session.exec(select(AdvisorRenewal))).all() == []


def store_failure(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))


class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_list_failure_returns_generic_500(self, client, monkeypatch):
        async def failing_list(self):
            store_failure()

        monkeypatch.setattr(AdvisorService, "list_all", failing_list)

        response = await client.get("/api/asesores")

        assert response.status_code == 500
        assert response.json() == {"error": "Error obteniendo asesores"}

    @pytest.mark.asyncio
    async def test_create_failure_hides_store_message(self, client, advisor_payload, monkeypatch):
        async def failing_create(self, data):
            store_failure()

        monkeypatch.setattr(AdvisorService, "create", failing_create)

        response = await client.post("/api/asesores/crear", json=advisor_payload)

        assert response.status_code == 500
        assert response.json() == {"error": "Error creando asesor"}
        assert "disk" not in response.text

    @pytest.mark.asyncio
    async def test_validate_failure_keeps_validation_shape(self, client, monkeypatch):
        async def failing_validate(self, slug):
            store_failure()

        monkeypatch.setattr(AdvisorService, "validate", failing_validate)

        response = await client.get("/api/asesores/juan-perez")

        assert response.status_code == 500
        assert response.json() == {"valid": False, "error": "Error validando asesor"}
