"""
CardioStore: CRUD over the cardio log, with PR checks on write.

PR labels are evaluated against the log as it is *before* the write, so an
edit is compared with every other run but never with its own old version.
"""
import logging
from datetime import timedelta
from typing import Iterable, List, Optional, Tuple

from sqlmodel import Session, select

from finhealth.analysis.running_prs import PRLabel, evaluate_new_prs
from finhealth.models.cardio import CardioEntry

logger = logging.getLogger(__name__)

# Imported sessions starting this close to a logged one of the same type
# are the same session.
DUPLICATE_TOLERANCE = timedelta(minutes=1)

REQUIRED_FIELDS = ("cardio_type", "date", "duration_minutes")


class CardioEntryNotFoundError(LookupError):
    """Raised when an entry id does not exist for this user."""


class CardioStore:
    """Newest-first cardio log for one user."""

    def __init__(self, session: Session, user_id: int = 1):
        self.session = session
        self.user_id = user_id

    def list_entries(self, limit: Optional[int] = None, offset: int = 0) -> List[CardioEntry]:
        query = (
            select(CardioEntry)
            .where(CardioEntry.user_id == self.user_id)
            .order_by(CardioEntry.date.desc(), CardioEntry.id.desc())
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)
        return list(self.session.exec(query).all())

    def get(self, entry_id: int) -> CardioEntry:
        entry = self.session.get(CardioEntry, entry_id)
        if entry is None or entry.user_id != self.user_id:
            raise CardioEntryNotFoundError(f"Cardio entry {entry_id} not found")
        return entry

    def add(self, entry: CardioEntry) -> Tuple[CardioEntry, List[PRLabel]]:
        """Persist a new entry. Returns it with the PR labels it earned."""
        entry.user_id = self.user_id
        labels = evaluate_new_prs(entry, self.list_entries(), is_edit=False)
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        if labels:
            logger.info("Cardio entry %s set new PRs: %s", entry.id, ", ".join(labels))
        return entry, labels

    def update(self, entry_id: int, fields: dict) -> Tuple[CardioEntry, List[PRLabel]]:
        """Apply field changes to an entry. Returns it with the PR labels it earned."""
        nulled = [k for k in REQUIRED_FIELDS if k in fields and fields[k] is None]
        if nulled:
            raise ValueError(f"Required fields cannot be cleared: {', '.join(nulled)}")
        existing = self.get(entry_id)
        candidate = CardioEntry(**{**existing.model_dump(), **fields, "id": entry_id})
        labels = evaluate_new_prs(candidate, self.list_entries(), is_edit=True)

        for k, v in fields.items():
            setattr(existing, k, v)
        self.session.add(existing)
        self.session.commit()
        self.session.refresh(existing)
        if labels:
            logger.info("Cardio entry %s set new PRs: %s", entry_id, ", ".join(labels))
        return existing, labels

    def delete(self, entry_id: int) -> None:
        entry = self.get(entry_id)
        self.session.delete(entry)
        self.session.commit()

    def import_entries(self, entries: Iterable[CardioEntry]) -> List[CardioEntry]:
        """
        Add entries not already in the log. Returns the ones added.

        An entry is a duplicate when the log (or an earlier entry of the
        same batch) has one of the same type starting within
        DUPLICATE_TOLERANCE. Imports are bulk writes and report no PRs.
        """
        seen = [(e.cardio_type, e.date) for e in self.list_entries()]
        added: List[CardioEntry] = []
        for entry in entries:
            if any(
                t == entry.cardio_type and abs(d - entry.date) <= DUPLICATE_TOLERANCE
                for t, d in seen
            ):
                continue
            entry.user_id = self.user_id
            self.session.add(entry)
            seen.append((entry.cardio_type, entry.date))
            added.append(entry)

        self.session.commit()
        for entry in added:
            self.session.refresh(entry)
        logger.info("Imported %d new cardio entries", len(added))
        return added
