"""Query-Layer: gecachte Lesezugriffe und gezielte Invalidierung.

Schreibzugriffe laufen direkt ueber den Client; danach invalidiert der
Aufrufer die betroffenen Keys (nur im Erfolgsfall).
"""

from field_builder.api.client import FieldBuilderClient
from field_builder.core.query_cache import QueryCache
from field_builder.schemas.field_definition import FieldReference
from field_builder.schemas.value_set import GlobalValueSetSummary, ObjectDefinitionSummary

OBJECT_FIELDS = "object-fields"
METADATA = "metadata"
OBJECT_DEFINITIONS = "object-definitions"
GLOBAL_VALUE_SETS = "global-value-sets"


def field_list_key(object_name: str) -> tuple:
    return (OBJECT_FIELDS, object_name, None)


def field_key(object_name: str, field_code: str) -> tuple:
    return (OBJECT_FIELDS, object_name, field_code)


def metadata_key(source_path: str) -> tuple:
    return (METADATA, source_path)


class FieldQueries:
    def __init__(self, client: FieldBuilderClient, cache: QueryCache | None = None):
        self.client = client
        self.cache = cache if cache is not None else QueryCache()

    def field_list(self, object_name: str) -> list[FieldReference]:
        return self.cache.fetch(
            field_list_key(object_name),
            lambda: self.client.list_fields(object_name),
        )

    def field(self, object_name: str, field_code: str) -> dict:
        return self.cache.fetch(
            field_key(object_name, field_code),
            lambda: self.client.get_field(object_name, field_code),
        )

    def metadata(self, source_path: str) -> dict:
        return self.cache.fetch(
            metadata_key(source_path),
            lambda: self.client.get_metadata(source_path),
        )

    def object_definitions(self) -> list[ObjectDefinitionSummary]:
        return self.cache.fetch((OBJECT_DEFINITIONS,), self.client.list_object_definitions)

    def global_value_sets(self) -> list[GlobalValueSetSummary]:
        return self.cache.fetch((GLOBAL_VALUE_SETS,), self.client.list_global_value_sets)

    def invalidate_field_list(self, object_name: str) -> None:
        self.cache.invalidate(field_list_key(object_name))

    def invalidate_field(self, object_name: str, field_code: str) -> None:
        """Invalidate one field's detail key and the parent field-list key."""
        self.cache.invalidate(field_key(object_name, field_code))
        self.invalidate_field_list(object_name)

    def invalidate_metadata(self, source_path: str) -> None:
        self.cache.invalidate(metadata_key(source_path))

    def invalidate_global_value_sets(self) -> None:
        self.cache.invalidate((GLOBAL_VALUE_SETS,))
