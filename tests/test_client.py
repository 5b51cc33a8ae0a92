import httpx
import pytest

from field_builder.api.client import FieldBuilderClient
from field_builder.core.errors import ApiError, NotFoundError
from field_builder.schemas.value_set import GlobalValueSetCreate

BASE_URL = "http://testserver"


def _client(handler):
    return FieldBuilderClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))


def test_list_fields(client):
    fields = client.list_fields("Account")
    website = next(f for f in fields if f.api_code == "website")
    assert website.type == "TextField"
    assert website.label == "Website"
    assert website.field_code == "website"


def test_get_field_not_found(client):
    with pytest.raises(NotFoundError) as exc:
        client.get_field("Account", "ghost")
    assert exc.value.message == "Field not found"
    assert exc.value.status_code == 404


def test_server_message_is_passed_verbatim(backend, client):
    backend.fail("PUT", "/api/object-fields/Account/website", 500, {
        "error": "conflict",
        "message": "conflict",
        "details": [{"code": "LOCKED", "message": "File is locked", "field": "label"}],
    })
    with pytest.raises(ApiError) as exc:
        client.update_field("Account", "website", {"label": "x"})
    assert exc.value.message == "conflict"
    assert exc.value.status_code == 500
    assert exc.value.details[0].code == "LOCKED"
    assert exc.value.details[0].field == "label"


def test_non_json_error_uses_default_message():
    with _client(lambda request: httpx.Response(502, text="Bad Gateway")) as client:
        with pytest.raises(ApiError) as exc:
            client.create_field("Account", {"apiCode": "x"})
    assert exc.value.message == "Failed to create field"
    assert exc.value.status_code == 502


def test_transport_error_becomes_api_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(ApiError) as exc:
            client.list_fields("Account")
    assert exc.value.message.startswith("Failed to fetch field definitions")
    assert exc.value.status_code is None


def test_empty_success_body():
    with _client(lambda request: httpx.Response(204)) as client:
        assert client.update_metadata("global_value_sets/x", {}) == {}
        assert client.list_global_value_sets() == []


def test_path_segments_are_encoded():
    seen = []

    def handler(request):
        seen.append(request.url.raw_path)
        return httpx.Response(200, json={})

    with _client(handler) as client:
        client.get_field("My Object", "a/b")
        client.get_metadata("global_value_sets/lead source")

    assert seen == [
        b"/api/object-fields/My%20Object/a%2Fb",
        b"/api/metadata/global_value_sets/lead%20source",
    ]


def test_metadata_round_trip(backend, client):
    data = client.get_metadata("global_value_sets/industry")
    assert "GlobalValueSet" in data
    client.update_metadata("global_value_sets/industry", {"GlobalValueSet": {"customValue": []}})
    assert backend.metadata["global_value_sets/industry"] == {"GlobalValueSet": {"customValue": []}}


def test_picker_data(client):
    objects = client.list_object_definitions()
    assert objects[0].api_code == "Account"
    assert objects[0].label_plural == "Accounts"

    value_sets = client.list_global_value_sets()
    assert value_sets[0].name == "industry"
    assert value_sets[0].value_count == 2


def test_create_global_value_set(backend, client):
    client.create_global_value_set(GlobalValueSetCreate(name="leadSource", values="Web\nReferral"))
    method, path, body = backend.calls("POST")[0]
    assert path == "/api/global-value-sets"
    assert body == {"name": "leadSource", "values": ["Web", "Referral"]}
