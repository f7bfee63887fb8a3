"""
Saved calculations, kept per account in a simple key-value store.

The store works over any mutable mapping of str -> str. The app hands it
``st.session_state``, so nothing outlives the browser session and the account
name is only a label: there is no password or identity check here.
"""
import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, List, MutableMapping

from gradecalc.config import MAX_SAVED_CALCULATIONS

logger = logging.getLogger(__name__)

CALCULATION_TYPES = ("grade", "final")
KEY_PREFIX = "calculations_"


class StorageError(Exception):
    pass


class AccountRequired(StorageError):
    def __init__(self):
        super().__init__("Please enter an account name to save your calculation.")


class SaveLimitReached(StorageError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"You have reached the maximum of {limit} saved calculations.")


@dataclass
class SavedCalculation:
    type: str
    name: str
    data: Any
    description: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class CalculationStore:
    def __init__(self, backend: MutableMapping[str, str], limit: int = MAX_SAVED_CALCULATIONS):
        self.backend = backend
        self.limit = limit

    @staticmethod
    def _key(account_id: str) -> str:
        account_id = (account_id or "").strip()
        if not account_id:
            raise AccountRequired()
        return f"{KEY_PREFIX}{account_id.lower()}"

    def _load(self, key: str) -> List[dict]:
        raw = self.backend.get(key)
        if not raw:
            return []
        return json.loads(raw)

    def list(self, account_id: str) -> List[SavedCalculation]:
        return [SavedCalculation(**record) for record in self._load(self._key(account_id))]

    def count(self, account_id: str) -> int:
        return len(self._load(self._key(account_id)))

    def save(self, account_id: str, calc_type: str, data: Any,
             name: str = "", description: str = "") -> SavedCalculation:
        if calc_type not in CALCULATION_TYPES:
            raise ValueError(f"calc_type must be one of {CALCULATION_TYPES} (got {calc_type!r})")

        key = self._key(account_id)
        records = self._load(key)
        if len(records) >= self.limit:
            logger.warning("Save rejected for %s: %d records already stored", key, len(records))
            raise SaveLimitReached(self.limit)

        calc = SavedCalculation(
            type=calc_type,
            name=(name or "").strip() or f"Calculation {len(records) + 1}",
            description=(description or "").strip(),
            data=data,
        )
        records.append(asdict(calc))
        self.backend[key] = json.dumps(records)
        logger.info("Saved %s calculation %s for %s", calc_type, calc.id, key)
        return calc

    def delete(self, account_id: str, calculation_id: str) -> bool:
        key = self._key(account_id)
        records = self._load(key)
        kept = [r for r in records if r["id"] != calculation_id]
        if len(kept) == len(records):
            return False
        self.backend[key] = json.dumps(kept)
        return True
