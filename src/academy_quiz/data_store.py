"""Data Store: Generic query/insert/update access to quiz collections in SQLite."""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from academy_quiz.exceptions import DataStoreError
from academy_quiz.models import OPTION_LABELS

logger = logging.getLogger(__name__)

# Column name -> SQLite type. BOOLEAN columns are stored as 0/1 and read back as bool.
SCHEMA: Dict[str, Dict[str, str]] = {
    "quizzes": {
        "id": "TEXT",
        "grade": "TEXT",
        "subject": "TEXT",
        "topic": "TEXT",
        "question": "TEXT",
        "option_a": "TEXT",
        "option_b": "TEXT",
        "option_c": "TEXT",
        "option_d": "TEXT",
        "correct_answer": "TEXT",
        "created_at": "TEXT",
        "updated_at": "TEXT",
    },
    "user_quiz_responses": {
        "id": "TEXT",
        "user_id": "TEXT",
        "quiz_id": "TEXT",
        "selected_answer": "TEXT",
        "is_correct": "BOOLEAN",
        "quiz_attempt_id": "TEXT",
        "created_at": "TEXT",
    },
    "leaderboard": {
        "id": "TEXT",
        "user_id": "TEXT",
        "highest_score": "INTEGER",
        "total_quizzes_taken": "INTEGER",
        "created_at": "TEXT",
        "updated_at": "TEXT",
    },
    "profiles": {
        "id": "TEXT",
        "username": "TEXT",
        "created_at": "TEXT",
    },
}


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DataStore:
    """Request/response interface to the backing store.

    Filters use exact equality; a list or tuple value matches any of its
    members. There are no transactions and no update-by-predicate, so
    updating N rows takes N calls to :meth:`update_one`.
    """

    def query(self, collection: str, filters: Optional[dict] = None,
              limit: Optional[int] = None, columns: Optional[Sequence[str]] = None,
              order_by: Optional[str] = None, descending: bool = False) -> List[dict]:
        raise NotImplementedError

    def insert_batch(self, collection: str, rows: Iterable[dict]) -> List[dict]:
        raise NotImplementedError

    def update_one(self, collection: str, match: dict, patch: dict) -> dict:
        raise NotImplementedError


class SQLiteDataStore(DataStore):
    """DataStore backed by a local SQLite database."""

    def __init__(self, db_path: str = "academy_quiz.db"):
        self.db_path = db_path
        self._init_db()

    @contextmanager
    def _connect(self):
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise DataStoreError(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise DataStoreError(str(e)) from e
        finally:
            conn.close()

    def _init_db(self):
        """Create the quiz tables if they do not exist."""
        with self._connect() as conn:
            for table, columns in SCHEMA.items():
                cols = ", ".join(
                    f"{name} {sql_type}{' UNIQUE NOT NULL' if name == 'id' else ''}"
                    for name, sql_type in columns.items()
                )
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {table} "
                    f"(seq INTEGER PRIMARY KEY AUTOINCREMENT, {cols})"
                )
        logger.info(f"Quiz store initialized at {self.db_path}")

    def _columns(self, collection: str) -> Dict[str, str]:
        try:
            return SCHEMA[collection]
        except KeyError:
            raise DataStoreError(f"Unknown collection: {collection}") from None

    def _check_fields(self, collection: str, fields: Iterable[str]):
        known = self._columns(collection)
        unknown = [f for f in fields if f not in known]
        if unknown:
            raise DataStoreError(f"Unknown fields for {collection}: {', '.join(unknown)}")

    def _to_dict(self, collection: str, row: sqlite3.Row) -> dict:
        columns = self._columns(collection)
        result = {}
        for key in row.keys():
            if key == "seq":
                continue
            value = row[key]
            if columns.get(key) == "BOOLEAN" and value is not None:
                value = bool(value)
            result[key] = value
        return result

    def _where(self, filters: dict):
        clauses, params = [], []
        for name, value in filters.items():
            if isinstance(value, (list, tuple, set)):
                values = list(value)
                if not values:
                    clauses.append("0")
                    continue
                clauses.append(f"{name} IN ({', '.join('?' for _ in values)})")
                params.extend(values)
            elif value is None:
                clauses.append(f"{name} IS NULL")
            else:
                clauses.append(f"{name} = ?")
                params.append(value)
        return (" WHERE " + " AND ".join(clauses)) if clauses else "", params

    def query(self, collection, filters=None, limit=None, columns=None,
              order_by=None, descending=False):
        filters = filters or {}
        self._check_fields(collection, list(filters) + list(columns or []) +
                           ([order_by] if order_by else []))
        if limit is not None and limit < 0:
            raise DataStoreError(f"Invalid limit: {limit}")
        select = ", ".join(columns) if columns else "*"
        where, params = self._where(filters)
        direction = "DESC" if descending else "ASC"
        order = f" ORDER BY {order_by} {direction}, seq ASC" if order_by else " ORDER BY seq ASC"
        sql = f"SELECT {select} FROM {collection}{where}{order}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._to_dict(collection, r) for r in rows]

    def insert_batch(self, collection, rows):
        columns = self._columns(collection)
        prepared = []
        for row in rows:
            self._check_fields(collection, row)
            record = dict(row)
            record.setdefault("id", str(uuid.uuid4()))
            if "created_at" in columns:
                record.setdefault("created_at", utc_now())
            prepared.append(record)
        if not prepared:
            return []
        with self._connect() as conn:
            for record in prepared:
                names = list(record)
                conn.execute(
                    f"INSERT INTO {collection} ({', '.join(names)}) "
                    f"VALUES ({', '.join('?' for _ in names)})",
                    [record[n] for n in names],
                )
        logger.debug(f"Inserted {len(prepared)} rows into {collection}")
        return self.query(collection, {"id": [r["id"] for r in prepared]})

    def update_one(self, collection, match, patch):
        if not match:
            raise DataStoreError("update_one requires a match key")
        self._check_fields(collection, list(match) + list(patch))
        patch = dict(patch)
        if "updated_at" in self._columns(collection):
            patch.setdefault("updated_at", utc_now())
        where, params = self._where(match)
        assignments = ", ".join(f"{name} = ?" for name in patch)
        with self._connect() as conn:
            cur = conn.execute(
                f"UPDATE {collection} SET {assignments}{where}",
                list(patch.values()) + params,
            )
            if cur.rowcount == 0:
                raise DataStoreError(f"No {collection} row matches {match}")
        return self.query(collection, match, limit=1)[0]

    def import_question_bank(self, path: str) -> int:
        """Load a JSON array of questions into the quizzes collection.

        Each object needs grade, subject, topic, question, four options (either
        ``option_a``..``option_d`` or an ``options`` list) and ``correct_answer``
        given as option text or as a label A-D.
        """
        with open(path, "r") as f:
            bank = json.load(f)
        rows = [question_row(item) for item in bank]
        self.insert_batch("quizzes", rows)
        logger.info(f"Imported {len(rows)} questions from {path}")
        return len(rows)


def question_row(item: dict) -> dict:
    options = item.get("options") or [item.get(f"option_{l.lower()}") for l in OPTION_LABELS]
    if len(options) != 4 or any(o is None for o in options):
        raise ValueError(f"Question needs exactly four options: {item.get('question')!r}")
    correct = item.get("correct_answer")
    if correct not in options and str(correct).upper() in OPTION_LABELS:
        correct = options[OPTION_LABELS.index(str(correct).upper())]
    if correct not in options:
        raise ValueError(f"Correct answer is not one of the options: {item.get('question')!r}")
    now = utc_now()
    row = {
        "grade": str(item["grade"]),
        "subject": str(item["subject"]),
        "topic": str(item["topic"]),
        "question": item["question"],
        "correct_answer": correct,
        "created_at": now,
        "updated_at": now,
    }
    for label, text in zip(OPTION_LABELS, options):
        row[f"option_{label.lower()}"] = text
    if item.get("id") is not None:
        row["id"] = str(item["id"])
    return row
