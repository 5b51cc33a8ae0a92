"""Option-Set-Editor fuer DropDownList-Felder.

Verwaltet die geordnete Werteliste eines Value Sets (Metadata-Ressource
unter sourcePath) als eigenstaendig gespeicherte Sub-Ressource.

Kern-Logik:
1. Laden: Liste normalisieren, nach order sortieren, transiente Keys vergeben
2. Mutationen (add/delete/move/edit): order wird immer aus der Position abgeleitet
3. Dirty-Check: kanonische Form gegen Snapshot vom letzten Laden/Speichern
4. Speichern: Keys entfernen, leere Header-Felder weglassen
"""

import itertools
import logging
from dataclasses import dataclass, replace

from field_builder.config import get_settings
from field_builder.core.errors import ApiError, ValidationError, ErrorDetail
from field_builder.core.metadata import as_list, first_value, parse_int, text_value, to_bool, bool_str
from field_builder.core.notifications import Notifier
from field_builder.services.queries import FieldQueries

logger = logging.getLogger(__name__)

NO_SORTING = "no sorting"
SORTING_OPTIONS = (NO_SORTING, "ascending", "descending")

# Editierbare Textspalten: Python-Attribut -> Metadata-Key
CELL_FIELDS = {
    "label": "label",
    "code": "code",
    "icon_set": "iconSet",
    "icon": "icon",
}


@dataclass(frozen=True)
class OptionRow:
    label: str = ""
    code: str = ""
    default: bool = False
    icon_set: str = ""
    icon: str = ""
    order: int = 0

    @classmethod
    def from_metadata(cls, data) -> "OptionRow":
        if not isinstance(data, dict):
            # <customValue>Foo</customValue> ohne Kind-Elemente
            return cls(label=text_value(data))
        return cls(
            label=text_value(data.get("label")),
            code=text_value(data.get("code")),
            default=to_bool(data.get("default")),
            icon_set=text_value(data.get("iconSet")),
            icon=text_value(data.get("icon")),
            order=parse_int(data.get("order")) or 0,
        )

    def to_metadata(self) -> dict:
        """Persisted form of the row: every value as a string."""
        return {
            "label": self.label,
            "code": self.code,
            "default": bool_str(self.default),
            "iconSet": self.icon_set,
            "icon": self.icon,
            "order": str(self.order),
        }


@dataclass(frozen=True)
class OptionItem:
    """Row plus a client-only key used for drag tracking; never persisted."""
    key: str
    row: OptionRow


def _renumber(items: list[OptionItem]) -> list[OptionItem]:
    return [
        item if item.row.order == index + 1
        else OptionItem(item.key, replace(item.row, order=index + 1))
        for index, item in enumerate(items)
    ]


def canonical_state(items, sorting: str, title: str) -> dict:
    """Comparable projection of the editor state.

    Keys are stripped and ``order`` is recomputed from position. Absent
    strings compare as "" and an absent default as "false".
    """
    rows = []
    for index, item in enumerate(items):
        row = item.row if isinstance(item, OptionItem) else item
        rows.append({
            "label": row.label or "",
            "code": row.code or "",
            "default": bool_str(row.default),
            "iconSet": row.icon_set or "",
            "icon": row.icon or "",
            "order": str(index + 1),
        })
    return {"sorting": sorting or NO_SORTING, "title": title or "", "items": rows}


class OptionSetEditor:
    def __init__(
        self,
        source_path: str,
        queries: FieldQueries,
        notifier: Notifier | None = None,
        root_key: str | None = None,
        item_key: str | None = None,
    ):
        settings = get_settings()
        self.source_path = source_path
        self.queries = queries
        self.notifier = notifier or Notifier()
        self.root_key = root_key or settings.default_value_set_root_key
        self.item_key = item_key or settings.default_value_set_item_key

        self.items: list[OptionItem] = []
        self.sorting: str = NO_SORTING
        self.title: str = ""
        self.has_changes = False
        self.is_loading = False
        self.is_saving = False
        self.error: str | None = None
        self._snapshot: dict | None = None
        self._new_keys = itertools.count(1)

    # ── Laden ────────────────────────────────────────────

    @property
    def rows(self) -> list[OptionRow]:
        return [item.row for item in self.items]

    @property
    def keys(self) -> list[str]:
        return [item.key for item in self.items]

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    def load(self) -> bool:
        """Fetch the value set. Failures are logged and leave the editor empty."""
        self.is_loading = True
        try:
            data = self.queries.metadata(self.source_path)
        except ApiError as exc:
            logger.warning(f"Loading value set '{self.source_path}' failed: {exc.message}")
            self.error = exc.message
            return False
        finally:
            self.is_loading = False

        self.error = None
        self.apply_metadata(data)
        return True

    def apply_metadata(self, data: dict) -> None:
        """Replace the editor state with fetched metadata and take a new snapshot."""
        root = first_value((data or {}).get(self.root_key)) or {}
        if not isinstance(root, dict):
            root = {}

        loaded = [OptionRow.from_metadata(raw) for raw in as_list(root.get(self.item_key))]
        # Fehlende order -> Position im geladenen Array; sort() ist stabil
        positioned = [
            (row.order or index + 1, row) for index, row in enumerate(loaded)
        ]
        positioned.sort(key=lambda pair: pair[0])

        self.items = _renumber([
            OptionItem(f"existing-{index}", row)
            for index, (_, row) in enumerate(positioned)
        ])
        self.sorting = text_value(root.get("sorting")) or NO_SORTING
        self.title = text_value(root.get("title"))
        self._snapshot = canonical_state(self.items, self.sorting, self.title)
        self.has_changes = False

    # ── Mutationen ───────────────────────────────────────

    def _index_of(self, key: str) -> int:
        for index, item in enumerate(self.items):
            if item.key == key:
                return index
        raise KeyError(key)

    def _set_items(self, items: list[OptionItem]) -> None:
        self.items = _renumber(items)
        self.recompute_has_changes()

    def add_row(self) -> str:
        """Append an empty row and return its key."""
        key = f"new-{next(self._new_keys)}"
        row = OptionRow(order=len(self.items) + 1)
        self._set_items([*self.items, OptionItem(key, row)])
        return key

    def delete_row(self, key: str) -> None:
        self._set_items([item for item in self.items if item.key != key])

    def move_row(self, key: str, new_index: int) -> None:
        """Move one row to ``new_index``; position is authoritative for order."""
        old_index = self._index_of(key)
        new_index = max(0, min(new_index, len(self.items) - 1))
        if old_index == new_index:
            return
        items = list(self.items)
        items.insert(new_index, items.pop(old_index))
        self._set_items(items)

    def drag(self, active_key: str, over_key: str | None) -> None:
        """Drop ``active_key`` onto the position of ``over_key``."""
        if over_key is None or active_key == over_key:
            return
        self.move_row(active_key, self._index_of(over_key))

    def edit_cell(self, key: str, field: str, value: str) -> None:
        """Replace a single text cell (label, code, iconSet/icon_set, icon)."""
        attr = field if field in CELL_FIELDS else _attr_for_key(field)
        if attr is None:
            raise ValidationError(
                f"'{field}' is not an editable option column.",
                details=[ErrorDetail(code="INVALID_COLUMN", message=f"Unknown column '{field}'.", field=field)],
            )
        index = self._index_of(key)
        items = list(self.items)
        items[index] = OptionItem(key, replace(items[index].row, **{attr: value}))
        self._set_items(items)

    def set_default(self, key: str, checked: bool) -> None:
        """Set one row's default flag; other rows keep theirs."""
        index = self._index_of(key)
        items = list(self.items)
        items[index] = OptionItem(key, replace(items[index].row, default=bool(checked)))
        self._set_items(items)

    def set_title(self, title: str) -> None:
        self.title = title
        self.recompute_has_changes()

    def set_sorting(self, sorting: str) -> None:
        if sorting not in SORTING_OPTIONS:
            raise ValidationError(
                f"Sorting must be one of {list(SORTING_OPTIONS)}.",
                details=[ErrorDetail(code="INVALID_SORTING", message=f"Got: '{sorting}'", field="sorting")],
            )
        self.sorting = sorting
        self.recompute_has_changes()

    # ── Dirty-Check & Speichern ──────────────────────────

    def canonical_state(self) -> dict:
        return canonical_state(self.items, self.sorting, self.title)

    def recompute_has_changes(self) -> bool:
        if self._snapshot is None:
            self.has_changes = False
        else:
            self.has_changes = self.canonical_state() != self._snapshot
        return self.has_changes

    def build_payload(self) -> dict:
        """Persisted structure ``{rootKey: {itemKey: [...], title?, sorting?}}``."""
        body: dict = {
            self.item_key: [
                replace(item.row, order=index + 1).to_metadata()
                for index, item in enumerate(self.items)
            ],
        }
        if self.title.strip():
            body["title"] = self.title.strip()
        if self.sorting and self.sorting != NO_SORTING:
            body["sorting"] = self.sorting
        return {self.root_key: body}

    def save(self) -> bool:
        """PUT the value set. On failure items and the dirty flag stay untouched."""
        if not self.is_loaded:
            raise ValidationError(
                "Value set has not been loaded; nothing to save.",
                details=[ErrorDetail(code="NOT_LOADED", message="Load the value set before saving.")],
            )
        payload = self.build_payload()
        self.is_saving = True
        try:
            self.queries.client.update_metadata(self.source_path, payload)
        except ApiError as exc:
            self.error = exc.message
            self.notifier.error("Error", exc.message or "Failed to update metadata")
            return False
        finally:
            self.is_saving = False

        self.error = None
        self._snapshot = self.canonical_state()
        self.has_changes = False
        self.queries.invalidate_metadata(self.source_path)
        logger.info(f"Saved value set '{self.source_path}' ({len(self.items)} items)")
        self.notifier.notify("Success", "Metadata updated successfully")
        return True


def _attr_for_key(key: str) -> str | None:
    for attr, metadata_key in CELL_FIELDS.items():
        if metadata_key == key:
            return attr
    return None
