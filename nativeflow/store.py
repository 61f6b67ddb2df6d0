"""Data-access contract over the entity tables.

Every call targets one table and commits on its own; there are no
multi-table transactions. Row visibility and write rights come from
`policies`, evaluated for the identity the store was opened with.
"""

import logging
from contextlib import contextmanager
from typing import Any, List, Optional, Tuple

from fastapi import Depends
from pydantic import BaseModel, ValidationError
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from . import models
from .auth import AuthContext, get_auth_context
from .database import get_db
from .exceptions import ConstraintError, MultipleRowsFound, RowNotFound, StoreError
from .policies import Caller, check_insert, check_update, read_filter, write_filter
from .schemas import TABLE_SCHEMAS, Role

logger = logging.getLogger(__name__)

NATIVE_UPSERT = {"sqlite": sqlite_insert, "postgresql": pg_insert}
SERVER_COLUMNS = ("id", "created_at", "updated_at")


class EntityStore:
    def __init__(self, db: Session, auth: Optional[AuthContext] = None):
        self.db = db
        self.auth = auth or AuthContext.anonymous()
        self._caller: Optional[Caller] = None

    @property
    def caller(self) -> Caller:
        if self._caller is None:
            role = None
            if self.auth.is_authenticated:
                role = (
                    self.db.query(models.Profile.role)
                    .filter(models.Profile.user_id == self.auth.user_id)
                    .scalar()
                )
            self._caller = Caller(user_id=self.auth.user_id, role=role or Role.CLIENT.value)
        return self._caller

    # ────────────────────────────── HELPERS ──────────────────────────────

    def _table(self, table: str):
        model = models.TABLES.get(table)
        if model is None:
            raise ConstraintError(f"Unknown table {table!r}")
        return model, TABLE_SCHEMAS[table]

    def _column(self, model, column: str):
        if column not in model.__table__.columns:
            raise ConstraintError(f"Unknown column {model.__tablename__}.{column}")
        return getattr(model, column)

    def _validate(self, schema, record: Any, **dump_kwargs) -> dict:
        if isinstance(record, BaseModel):
            record = record.model_dump(exclude_unset=True)
        try:
            parsed = schema.model_validate(record)
        except ValidationError as e:
            raise ConstraintError(str(e)) from e
        return parsed.model_dump(**dump_kwargs)

    def _insert_values(self, model, schema, record: Any) -> dict:
        values = self._validate(schema.insert, record, exclude_unset=True)
        columns = model.__table__.columns
        # explicit None only where the column has no default of its own
        return {k: v for k, v in values.items() if v is not None or columns[k].default is None}

    @contextmanager
    def _writing(self, table: str):
        try:
            yield
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info("Constraint violation on %s: %s", table, e.orig)
            raise ConstraintError(str(e.orig)) from e
        except DBAPIError as e:
            self.db.rollback()
            logger.error("Write to %s failed: %s", table, e)
            raise StoreError(f"Write to {table} failed") from e

    def _visible(self, table: str, column: str, value: Any):
        model, schema = self._table(table)
        query = self.db.query(model).filter(self._column(model, column) == value)
        predicate = read_filter(table, self.caller)
        if predicate is not None:
            query = query.filter(predicate)
        return model, schema, query

    # ────────────────────────────── OPERATIONS ──────────────────────────────

    def insert(self, table: str, record: Any) -> BaseModel:
        model, schema = self._table(table)
        values = self._insert_values(model, schema, record)
        check_insert(table, self.caller, values)

        obj = model(**values)
        with self._writing(table):
            self.db.add(obj)
        self.db.refresh(obj)
        logger.info("Inserted %s id=%s", table, obj.id)
        return schema.row.model_validate(obj)

    def select_by_equality(
        self,
        table: str,
        column: str,
        value: Any,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[BaseModel]:
        model, schema, query = self._visible(table, column, value)
        if order_by:
            col = self._column(model, order_by)
            query = query.order_by(col.asc() if ascending else col.desc())
        return [schema.row.model_validate(obj) for obj in query.all()]

    def select_single_by_equality(self, table: str, column: str, value: Any) -> Optional[BaseModel]:
        """Return the one matching row, or None when nothing matches."""
        _, schema, query = self._visible(table, column, value)
        rows = query.limit(2).all()
        if not rows:
            return None
        if len(rows) > 1:
            raise MultipleRowsFound(f"More than one {table} row where {column} = {value!r}")
        return schema.row.model_validate(rows[0])

    def update(self, table: str, column: str, value: Any, patch: Any) -> List[BaseModel]:
        model, schema = self._table(table)
        values = self._validate(schema.update, patch, exclude_unset=True)
        if not values:
            raise ConstraintError("Nothing to update")
        check_update(table, self.caller, values)

        query = self.db.query(model).filter(self._column(model, column) == value)
        predicate = write_filter(table, self.caller)
        if predicate is not None:
            query = query.filter(predicate)
        rows = query.all()
        if not rows:
            raise RowNotFound(f"No {table} row where {column} = {value!r}")

        with self._writing(table):
            for obj in rows:
                for key, val in values.items():
                    setattr(obj, key, val)
        for obj in rows:
            self.db.refresh(obj)
        logger.info("Updated %d %s row(s) where %s=%s", len(rows), table, column, value)
        return [schema.row.model_validate(obj) for obj in rows]

    def upsert(self, table: str, key: str, record: Any) -> Tuple[BaseModel, bool]:
        """Insert, or update the row whose unique `key` column matches.

        Returns the stored row and whether it was created.
        """
        model, schema = self._table(table)
        key_col = self._column(model, key)
        values = self._insert_values(model, schema, record)
        if values.get(key) is None:
            raise ConstraintError(f"Upsert on {table} needs a value for {key}")
        patch = {k: v for k, v in values.items() if k != key and k not in SERVER_COLUMNS}
        check_insert(table, self.caller, values)
        check_update(table, self.caller, patch)

        dialect = self.db.get_bind().dialect.name
        dialect_insert = NATIVE_UPSERT.get(dialect)
        if dialect_insert is None:
            logger.warning("No native upsert on %s; %s.%s falls back to read-then-write", dialect, table, key)
            existing = self.db.query(model).filter(key_col == values[key]).first()
            if existing is None:
                return self.insert(table, values), True
            return self.update(table, key, values[key], patch)[0], False

        columns = model.__table__.columns
        now = models.utcnow()
        values.setdefault("id", models.new_id())
        for stamp in ("created_at", "updated_at"):
            if stamp in columns:
                values.setdefault(stamp, now)

        stmt = dialect_insert(model).values(**values)
        set_ = {k: stmt.excluded[k] for k in patch} or {key: stmt.excluded[key]}
        if "updated_at" in columns:
            set_["updated_at"] = now
        stmt = stmt.on_conflict_do_update(index_elements=[key], set_=set_).returning(model.id)

        with self._writing(table):
            row_id = self.db.execute(stmt).scalar_one()
        created = row_id == values["id"]
        obj = self.db.get(model, row_id, populate_existing=True)
        logger.info("Upserted %s id=%s (%s)", table, row_id, "created" if created else "updated")
        return schema.row.model_validate(obj), created


def get_store(
    db: Session = Depends(get_db), auth: AuthContext = Depends(get_auth_context)
) -> EntityStore:
    return EntityStore(db, auth)
