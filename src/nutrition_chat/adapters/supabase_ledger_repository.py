"""Supabase repository for daily log aggregates."""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from nutrition_chat.domain.ledger import DailyLog, MealEntry, SavedFoodItem
from nutrition_chat.services.ledger import LedgerRepository

_LOG_COLUMNS = "id, date, total_calories, protein, carbs, fats, water_intake_ml"
_ENTRY_COLUMNS = (
    "id, daily_log_id, logged_at, meal_type, total_calories, protein, carbs, fats, "
    "associated_message_id"
)
_ITEM_COLUMNS = "id, meal_entry_id, name, quantity, calories"


@dataclass
class SupabaseLedgerRepository(LedgerRepository):
    """Supabase implementation that reads fresh rows on every lookup.

    Only logs inserted since the last successful ``save`` are held in memory, so
    they can be found before their first write. ``save`` writes just the logs it
    is given.
    """

    client: Client
    _unsaved: dict[UUID, DailyLog] = field(default_factory=dict, init=False)
    _deleted_entry_ids: list[UUID] = field(default_factory=list, init=False)
    _deleted_item_ids: list[UUID] = field(default_factory=list, init=False)

    def find_daily_log(self, day: date) -> DailyLog | None:
        """Return the log for a day, loading it with its entries."""
        for log in self._unsaved.values():
            if log.date == day:
                return log
        response = (
            self.client.table("daily_logs")
            .select(_LOG_COLUMNS)
            .eq("date", day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return self._load(response.data[0])

    def find_daily_log_by_entry(self, entry_id: UUID) -> DailyLog | None:
        """Return the log owning a meal entry."""
        for log in self._unsaved.values():
            if log.find_meal(entry_id) is not None:
                return log
        return self._find_owner(entry_id)

    def insert(self, log: DailyLog) -> None:
        """Track a new log; it is written on the next save."""
        self._unsaved[log.id] = log

    def delete(self, record: MealEntry | SavedFoodItem) -> None:
        """Schedule an entry or item row for deletion."""
        if isinstance(record, MealEntry):
            self._deleted_entry_ids.append(record.id)
        else:
            self._deleted_item_ids.append(record.id)

    def save(self, logs: list[DailyLog]) -> None:
        """Write the given logs and pending deletions."""
        if logs:
            self.client.table("daily_logs").upsert(
                [_log_row(log) for log in logs]
            ).execute()
        entry_rows = [_entry_row(log, entry) for log in logs for entry in log.meals]
        if entry_rows:
            self.client.table("meal_entries").upsert(entry_rows).execute()
        if self._deleted_item_ids:
            self.client.table("saved_food_items").delete().in_(
                "id", [str(item_id) for item_id in self._deleted_item_ids]
            ).execute()
        if self._deleted_entry_ids:
            self.client.table("meal_entries").delete().in_(
                "id", [str(entry_id) for entry_id in self._deleted_entry_ids]
            ).execute()
        item_rows = [
            _item_row(entry, item)
            for log in logs
            for entry in log.meals
            for item in entry.food_items
        ]
        if item_rows:
            self.client.table("saved_food_items").upsert(item_rows).execute()
        self._reset()

    def rollback(self) -> None:
        """Forget unsaved logs and pending deletions."""
        self._reset()

    def _reset(self) -> None:
        self._unsaved.clear()
        self._deleted_entry_ids.clear()
        self._deleted_item_ids.clear()

    def _find_owner(self, entry_id: UUID) -> DailyLog | None:
        response = (
            self.client.table("meal_entries")
            .select("daily_log_id")
            .eq("id", str(entry_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        log_id = UUID(response.data[0]["daily_log_id"])
        if log_id in self._unsaved:
            return self._unsaved[log_id]
        response = (
            self.client.table("daily_logs")
            .select(_LOG_COLUMNS)
            .eq("id", str(log_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return self._load(response.data[0])

    def _load(self, row: dict[str, object]) -> DailyLog:
        log_id = UUID(row["id"])
        entries_response = (
            self.client.table("meal_entries")
            .select(_ENTRY_COLUMNS)
            .eq("daily_log_id", str(log_id))
            .order("logged_at", desc=False)
            .execute()
        )
        entries = [_parse_entry(entry) for entry in entries_response.data or []]
        if entries:
            items_response = (
                self.client.table("saved_food_items")
                .select(_ITEM_COLUMNS)
                .in_("meal_entry_id", [str(entry.id) for entry in entries])
                .execute()
            )
            by_entry = {entry.id: entry for entry in entries}
            for item_row in items_response.data or []:
                entry = by_entry.get(UUID(item_row["meal_entry_id"]))
                if entry is not None:
                    entry.food_items.append(_parse_item(item_row))
        log = DailyLog(
            id=log_id,
            date=date.fromisoformat(str(row["date"])),
            total_calories=int(row.get("total_calories") or 0),
            protein=float(row.get("protein") or 0.0),
            carbs=float(row.get("carbs") or 0.0),
            fats=float(row.get("fats") or 0.0),
            water_intake_ml=int(row.get("water_intake_ml") or 0),
            meals=entries,
        )
        return log


def _log_row(log: DailyLog) -> dict[str, object]:
    return {
        "id": str(log.id),
        "date": log.date.isoformat(),
        "total_calories": log.total_calories,
        "protein": log.protein,
        "carbs": log.carbs,
        "fats": log.fats,
        "water_intake_ml": log.water_intake_ml,
    }


def _entry_row(log: DailyLog, entry: MealEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "daily_log_id": str(log.id),
        "logged_at": entry.timestamp.isoformat(),
        "meal_type": entry.meal_type,
        "total_calories": entry.total_calories,
        "protein": entry.protein,
        "carbs": entry.carbs,
        "fats": entry.fats,
        "associated_message_id": (
            str(entry.associated_message_id) if entry.associated_message_id else None
        ),
    }


def _item_row(entry: MealEntry, item: SavedFoodItem) -> dict[str, object]:
    return {
        "id": str(item.id),
        "meal_entry_id": str(entry.id),
        "name": item.name,
        "quantity": item.quantity,
        "calories": item.calories,
    }


def _parse_entry(row: dict[str, object]) -> MealEntry:
    message_id = row.get("associated_message_id")
    return MealEntry(
        id=UUID(row["id"]),
        timestamp=datetime.fromisoformat(str(row["logged_at"])),
        meal_type=str(row.get("meal_type", "")),
        total_calories=int(row.get("total_calories") or 0),
        protein=float(row.get("protein") or 0.0),
        carbs=float(row.get("carbs") or 0.0),
        fats=float(row.get("fats") or 0.0),
        associated_message_id=UUID(str(message_id)) if message_id else None,
    )


def _parse_item(row: dict[str, object]) -> SavedFoodItem:
    return SavedFoodItem(
        id=UUID(row["id"]),
        name=str(row.get("name", "")),
        quantity=str(row.get("quantity", "")),
        calories=int(row.get("calories") or 0),
    )
