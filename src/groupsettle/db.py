"""SQLite ledger storage for GroupSettle."""

import sqlite3
import uuid
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .exceptions import DuplicateResourceError
from .models import ExpenseRecord, Group, Participant, SplitEntry, SplitRule


def _new_id() -> str:
    return str(uuid.uuid4())


class Database:
    """SQLite database manager.

    Money is stored as TEXT so Decimal values round-trip exactly.
    """

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS participants (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT UNIQUE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_groups (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                created_by TEXT NOT NULL REFERENCES participants(id),
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        # seq preserves join order, which equal splits depend on
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS group_members (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                group_id TEXT NOT NULL REFERENCES expense_groups(id),
                participant_id TEXT NOT NULL REFERENCES participants(id),
                joined_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (group_id, participant_id)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id TEXT PRIMARY KEY,
                group_id TEXT NOT NULL REFERENCES expense_groups(id),
                description TEXT NOT NULL,
                total_amount TEXT NOT NULL,
                paid_by TEXT NOT NULL REFERENCES participants(id),
                split_rule TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_splits (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                expense_id TEXT NOT NULL REFERENCES expenses(id) ON DELETE CASCADE,
                participant_id TEXT NOT NULL REFERENCES participants(id),
                amount TEXT NOT NULL
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Participant operations
    # ========================================================================

    def create_participant(self, name: str, email: str | None = None) -> Participant:
        """Create a participant. Emails must be unique when given."""
        participant = Participant(id=_new_id(), name=name, email=email)
        try:
            self.conn.execute(
                "INSERT INTO participants (id, name, email, created_at) VALUES (?, ?, ?, ?)",
                (participant.id, name, email, datetime.now().isoformat()),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateResourceError(
                f"User already exists with email: '{email}'"
            ) from e
        self.conn.commit()
        return participant

    def get_participant(self, participant_id: str) -> Participant | None:
        """Get a participant by ID."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, name, email FROM participants WHERE id = ?", (participant_id,)
        )
        row = cursor.fetchone()
        if not row:
            return None
        return Participant(id=row["id"], name=row["name"], email=row["email"])

    def list_participants(self) -> list[Participant]:
        """Get all participants, oldest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, name, email FROM participants ORDER BY created_at, rowid"
        )
        return [
            Participant(id=row["id"], name=row["name"], email=row["email"])
            for row in cursor.fetchall()
        ]

    def get_participant_names(self, participant_ids: list[str]) -> dict[str, str]:
        """Map participant IDs to display names. Unknown IDs are left out."""
        if not participant_ids:
            return {}
        placeholders = ", ".join("?" for _ in participant_ids)
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT id, name FROM participants WHERE id IN ({placeholders})",
            list(participant_ids),
        )
        return {row["id"]: row["name"] for row in cursor.fetchall()}

    # ========================================================================
    # Group operations
    # ========================================================================

    def create_group(self, name: str, created_by: str) -> Group:
        """Create a group. The creator becomes its first member."""
        group_id = _new_id()
        now = datetime.now().isoformat()
        with self.conn:
            self.conn.execute(
                "INSERT INTO expense_groups (id, name, created_by, created_at) VALUES (?, ?, ?, ?)",
                (group_id, name, created_by, now),
            )
            self.conn.execute(
                "INSERT INTO group_members (group_id, participant_id, joined_at) VALUES (?, ?, ?)",
                (group_id, created_by, now),
            )
        return Group(id=group_id, name=name, created_by=created_by, member_ids=(created_by,))

    def get_group(self, group_id: str) -> Group | None:
        """Get a group and its members in join order."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT id, name, created_by FROM expense_groups WHERE id = ?", (group_id,))
        row = cursor.fetchone()
        if not row:
            return None
        return Group(
            id=row["id"],
            name=row["name"],
            created_by=row["created_by"],
            member_ids=tuple(self.get_member_ids(group_id)),
        )

    def add_member(self, group_id: str, participant_id: str) -> Group:
        """Add a participant to the end of a group's member list."""
        try:
            self.conn.execute(
                "INSERT INTO group_members (group_id, participant_id, joined_at) VALUES (?, ?, ?)",
                (group_id, participant_id, datetime.now().isoformat()),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateResourceError(
                f"User {participant_id} is already a member of group {group_id}"
            ) from e
        self.conn.commit()

        group = self.get_group(group_id)
        if group is None:
            raise RuntimeError(f"Group {group_id} disappeared after adding a member")
        return group

    def get_member_ids(self, group_id: str) -> list[str]:
        """Get member IDs of a group in join order."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT participant_id FROM group_members WHERE group_id = ? ORDER BY seq",
            (group_id,),
        )
        return [row["participant_id"] for row in cursor.fetchall()]

    def is_member(self, group_id: str, participant_id: str) -> bool:
        """Check if a participant belongs to a group."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT 1 FROM group_members WHERE group_id = ? AND participant_id = ?",
            (group_id, participant_id),
        )
        return cursor.fetchone() is not None

    # ========================================================================
    # Expense operations
    # ========================================================================

    def save_expense(self, group_id: str, record: ExpenseRecord) -> ExpenseRecord:
        """Save an expense and its splits. Returns the record with its new ID."""
        saved = record.model_copy(update={"id": _new_id(), "group_id": group_id})

        # Expense and splits commit together or not at all
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO expenses (
                    id, group_id, description, total_amount, paid_by,
                    split_rule, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    saved.id,
                    group_id,
                    saved.description,
                    str(saved.total_amount),
                    saved.paid_by,
                    saved.split_rule.value,
                    saved.created_at.isoformat(),
                ),
            )
            self.conn.executemany(
                "INSERT INTO expense_splits (expense_id, participant_id, amount) VALUES (?, ?, ?)",
                [(saved.id, split.participant_id, str(split.amount)) for split in saved.splits],
            )
        return saved

    def list_expenses(self, group_id: str) -> list[ExpenseRecord]:
        """Get all expenses of a group with their splits, oldest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT s.expense_id, s.participant_id, s.amount
            FROM expense_splits s
            JOIN expenses e ON e.id = s.expense_id
            WHERE e.group_id = ?
            ORDER BY s.id
            """,
            (group_id,),
        )
        splits: dict[str, list[SplitEntry]] = {}
        for row in cursor.fetchall():
            splits.setdefault(row["expense_id"], []).append(
                SplitEntry(participant_id=row["participant_id"], amount=Decimal(row["amount"]))
            )

        cursor.execute(
            """
            SELECT id, group_id, description, total_amount, paid_by,
                   split_rule, created_at
            FROM expenses
            WHERE group_id = ?
            ORDER BY created_at, rowid
            """,
            (group_id,),
        )
        return [
            ExpenseRecord(
                id=row["id"],
                group_id=row["group_id"],
                description=row["description"],
                total_amount=Decimal(row["total_amount"]),
                paid_by=row["paid_by"],
                split_rule=SplitRule(row["split_rule"]),
                splits=tuple(splits.get(row["id"], [])),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in cursor.fetchall()
        ]

    def delete_expense(self, expense_id: str) -> bool:
        """Delete an expense and its splits. Returns False if it didn't exist."""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
        self.conn.commit()
        return cursor.rowcount > 0
