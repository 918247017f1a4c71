from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, create_engine, event
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, relationship

from fastapi_rest_query import (
    FieldKind,
    FieldSpec,
    ModelMetadata,
    PaginationPolicy,
    RelationSpec,
    SearchOperator,
    SearchSpec,
    SortPolicy,
    metadata_from_model,
)

# ───── Plain metadata for the descriptor tests ───────────

TEAM = ModelMetadata(
    name="team",
    fields={
        "id": FieldSpec(kind=FieldKind.INTEGER, nullable=False),
        "name": FieldSpec(),
        "isDelete": FieldSpec(default="no"),
    },
    searchable_fields={"name": SearchSpec()},
    soft_delete_field="isDelete",
    allowed_relation_attributes=("id", "name"),
)

USER = ModelMetadata(
    name="user",
    fields={
        "id": FieldSpec(kind=FieldKind.INTEGER, nullable=False),
        "name": FieldSpec(),
        "email": FieldSpec(),
        "age": FieldSpec(kind=FieldKind.INTEGER),
        "createdAt": FieldSpec(kind=FieldKind.DATETIME),
        "isDelete": FieldSpec(default="no"),
    },
    filterable_fields=("id", "name", "email", "age"),
    searchable_fields={
        "name": SearchSpec(),
        "email": SearchSpec(match=("{1}", "%,{1}", "{1},%", "%,{1},%"), op=SearchOperator.LIKE),
    },
    sort_policy=SortPolicy(default_field="id", default_direction="DESC", allowed_fields=("id", "name", "createdAt")),
    pagination_policy=PaginationPolicy(default_page_size=10, max_page_size=1000, max_offset=10000),
    relations={
        "team": RelationSpec(model=TEAM),
        "owner": RelationSpec(model=TEAM, required=True),
    },
    soft_delete_field="isDelete",
)


# ───── Mapped models for the SQLAlchemy tests ───────────

class Base(DeclarativeBase):
    pass


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    isDelete: Mapped[str] = mapped_column(String(3), default="no")

    users: Mapped[list["User"]] = relationship(back_populates="team")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    email: Mapped[str] = mapped_column(String(100))
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    createdAt: Mapped[datetime] = mapped_column(DateTime)
    isDelete: Mapped[str] = mapped_column(String(3), default="no")
    team_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)

    team: Mapped[Optional["Team"]] = relationship(back_populates="users")


TEAM_META = metadata_from_model(
    Team,
    searchable_fields={"name": SearchSpec()},
    soft_delete_field="isDelete",
    allowed_relation_attributes=("id", "name"),
)

USER_META = metadata_from_model(
    User,
    filterable_fields=("id", "name", "email", "age", "team_id"),
    searchable_fields={
        "id": SearchSpec(match=("{1}",), op=SearchOperator.EQ),
        "name": SearchSpec(),
        "email": SearchSpec(),
    },
    sort_policy=SortPolicy(default_field="id", allowed_fields=("id", "name", "age")),
    soft_delete_field="isDelete",
    relations={
        "team": RelationSpec(model=TEAM_META),
        "mustTeam": RelationSpec(model=TEAM_META, required=True, attribute="team"),
    },
)


def seed(engine) -> None:
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        session.add_all([
            Team(id=1, name="Alpha", isDelete="no"),
            Team(id=2, name="Beta", isDelete="yes"),
        ])
        session.add_all([
            User(id=1, name="alice", email="alice@example.com", age=30,
                 createdAt=datetime(2026, 1, 1), isDelete="no", team_id=1),
            User(id=2, name="bob", email="bob@example.com", age=25,
                 createdAt=datetime(2026, 1, 2), isDelete="no", team_id=2),
            User(id=3, name="carol", email="carol@corp.com", age=40,
                 createdAt=datetime(2026, 1, 3), isDelete="no", team_id=None),
            User(id=4, name="dave", email="dave@example.com", age=None,
                 createdAt=datetime(2026, 1, 4), isDelete="yes", team_id=1),
        ])
        session.commit()


def make_engine():
    # one shared connection, so the database survives FastAPI's worker threads
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    seed(engine)
    return engine


class StatementCounter:
    """Counts SELECT statements sent to an engine."""

    def __init__(self, engine):
        self.engine = engine
        self.statements = []

    def _record(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    def __enter__(self):
        event.listen(self.engine, "before_cursor_execute", self._record)
        return self

    def __exit__(self, *exc):
        event.remove(self.engine, "before_cursor_execute", self._record)
        return False
