from __future__ import annotations

import jwt
import pytest

from dm_service.infrastructure.auth.hs256_verifier import HS256Verifier
from dm_service.infrastructure.bus.serializer import deserialize_event, serialize_event
from tests.conftest import ALICE

SECRET = "test-secret-with-enough-length-for-hs256"


@pytest.mark.asyncio
async def test_hs256_token_maps_sub_to_user_id():
    token = jwt.encode({"sub": str(ALICE)}, SECRET, algorithm="HS256")

    principal = await HS256Verifier(SECRET).verify(token)

    assert principal.user_id == ALICE
    assert principal.principal_key == f"user:{ALICE}"


@pytest.mark.asyncio
async def test_non_uuid_subject_rejected():
    token = jwt.encode({"sub": "42"}, SECRET, algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError):
        await HS256Verifier(SECRET).verify(token)


@pytest.mark.asyncio
async def test_audience_enforced_when_configured():
    token = jwt.encode({"sub": str(ALICE), "aud": "other"}, SECRET, algorithm="HS256")

    with pytest.raises(jwt.InvalidAudienceError):
        await HS256Verifier(SECRET, audience="dm").verify(token)


def test_envelope_moves_event_type_out_of_data():
    raw = serialize_event("dm.typing", {"event_type": "dm.typing", "user_id": ALICE})

    assert deserialize_event(raw) == ("dm.typing", {"user_id": str(ALICE)})
