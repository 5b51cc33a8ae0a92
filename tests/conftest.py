import json
from collections.abc import Generator

import httpx
import pytest

from field_builder.api.client import FieldBuilderClient
from field_builder.core.metadata import first_value
from field_builder.core.notifications import Notifier
from field_builder.services.queries import FieldQueries

BASE_URL = "http://testserver"


def _field_meta(**values) -> dict:
    return dict(values)


def _seed_fields() -> dict:
    return {
        "Account": {
            "website": {
                # Rohes xml2js-Format mit FieldDefinition-Root
                "FieldDefinition": {
                    "type": ["TextField"],
                    "apiCode": ["website"],
                    "label": ["Website"],
                    "subtype": ["url"],
                    "maxLength": ["255"],
                    "copyAble": ["true"],
                    "truncate": ["false"],
                },
            },
            "discount": _field_meta(
                type="NumberField", apiCode="discount", label="Discount",
                format="percentage", decimalPlaces="2", step="0.5",
            ),
            "closeDate": _field_meta(
                type="DateTimeField", apiCode="closeDate", label="Close Date", fieldType="Date",
            ),
            "active": _field_meta(
                type="CheckboxField", apiCode="active", label="Active", defaultValue="true",
            ),
            "industry": _field_meta(
                type="DropDownListField", apiCode="industry", label="Industry",
                subtype="singleSelect", sourceType="GlobalMetadata",
                sourcePath="global_value_sets/industry", showSearch="false",
            ),
            "billing": _field_meta(
                type="AddressField", apiCode="billing", label="Billing Address",
            ),
            "parentAccount": _field_meta(
                type="LookupField", apiCode="parentAccount", label="Parent Account",
                referencedObject="Account", primaryDisplayField="name",
                displayColumns='["name", "industry"]',
            ),
            "name": _field_meta(type="TextField", apiCode="name", label="Account Name"),
            "formula": _field_meta(type="FormulaField", apiCode="formula", label="Formula"),
        },
    }


def _seed_metadata() -> dict:
    return {
        "global_value_sets/industry": {
            "GlobalValueSet": {
                "customValue": [
                    {"label": ["Banking"], "code": ["banking"], "default": ["false"], "order": ["2"]},
                    {"label": ["Agriculture"], "code": ["agri"], "default": ["true"], "order": ["1"]},
                ],
                "sorting": ["ascending"],
                "title": ["Industry"],
            },
        },
        "global_value_sets/single": {
            "GlobalValueSet": {
                "customValue": {"label": ["Only"], "code": ["only"]},
            },
        },
    }


class FakeBackend:
    """In-memory stand-in for the REST backend, served via httpx.MockTransport."""

    def __init__(self):
        self.fields = _seed_fields()
        self.metadata = _seed_metadata()
        self.objects = [
            {"apiCode": "Account", "labelPlural": "Accounts", "labelSingular": "Account",
             "iconSet": "lucide", "icon": "building"},
            {"apiCode": "Contact", "labelPlural": "Contacts", "labelSingular": "Contact",
             "iconSet": "lucide", "icon": "user"},
        ]
        self.value_sets = [{"name": "industry", "label": "Industry", "valueCount": 2}]
        self.requests: list[tuple[str, str, object]] = []
        self.failures: dict[tuple[str, str], tuple[int, object]] = {}

    def fail(self, method: str, path: str, status: int = 500, body=None) -> None:
        self.failures[(method, path)] = (status, body if body is not None else {"message": "failed"})

    def calls(self, method: str | None = None) -> list[tuple[str, str, object]]:
        return [r for r in self.requests if method is None or r[0] == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.requests.append((method, path, body))

        if (method, path) in self.failures:
            status, payload = self.failures[(method, path)]
            return httpx.Response(status, json=payload)

        parts = path.removeprefix("/api/").split("/")
        resource = parts[0]

        if resource == "object-fields":
            return self._object_fields(method, parts[1:], body)
        if resource == "metadata":
            source_path = "/".join(parts[1:])
            if method == "GET":
                if source_path not in self.metadata:
                    return httpx.Response(404, json={"message": "Metadata not found"})
                return httpx.Response(200, json=self.metadata[source_path])
            if method == "PUT":
                self.metadata[source_path] = body
                return httpx.Response(200, json={"success": True})
        if resource == "object-definitions" and method == "GET":
            return httpx.Response(200, json=self.objects)
        if resource == "global-value-sets":
            if method == "GET":
                return httpx.Response(200, json=self.value_sets)
            if method == "POST":
                return self._create_value_set(body)
        return httpx.Response(404, json={"message": f"No route for {method} {path}"})

    def _object_fields(self, method, parts, body) -> httpx.Response:
        object_name = parts[0]
        fields = self.fields.setdefault(object_name, {})
        if len(parts) == 1:
            if method == "GET":
                listing = []
                for code, meta in fields.items():
                    flat = meta.get("FieldDefinition", meta)
                    listing.append({
                        "type": first_value(flat["type"]),
                        "apiCode": code,
                        "label": first_value(flat.get("label", "")),
                        "filePath": f"{code}.field_meta.xml",
                    })
                return httpx.Response(200, json=listing)
            if method == "POST":
                code = body["apiCode"]
                if code in fields:
                    return httpx.Response(409, json={"message": f"Field '{code}' already exists"})
                fields[code] = body
                return httpx.Response(201, json=body)

        code = parts[1]
        if code not in fields:
            return httpx.Response(404, json={"message": "Field not found"})
        if method == "GET":
            return httpx.Response(200, json=fields[code])
        if method == "PUT":
            fields[code] = body
            return httpx.Response(200, json={"success": True})
        return httpx.Response(405, json={"message": "Method not allowed"})

    def _create_value_set(self, body) -> httpx.Response:
        name = body["name"]
        if any(vs["name"] == name for vs in self.value_sets):
            return httpx.Response(409, json={"message": f"Global Value Set '{name}' already exists"})
        self.value_sets.append({"name": name, "label": name, "valueCount": len(body["values"])})
        self.metadata[f"global_value_sets/{name}"] = {
            "GlobalValueSet": {
                "customValue": [
                    {"label": [v], "code": [v], "default": ["false"], "order": [str(i + 1)]}
                    for i, v in enumerate(body["values"])
                ],
            },
        }
        return httpx.Response(201, json={"name": name})


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(backend) -> Generator[FieldBuilderClient, None, None]:
    c = FieldBuilderClient(base_url=BASE_URL, transport=httpx.MockTransport(backend.handler))
    try:
        yield c
    finally:
        c.close()


@pytest.fixture
def queries(client) -> FieldQueries:
    return FieldQueries(client)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()
