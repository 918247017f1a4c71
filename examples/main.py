from contextlib import asynccontextmanager
from datetime import datetime, timezone
from enum import Enum

from fastapi import Depends, FastAPI, HTTPException, Response
import sqlalchemy
from sqlalchemy import String, ForeignKey, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column, relationship, declarative_base
import uvicorn

from fastapi_rest_query import (
    RelationSpec,
    RestParams,
    SearchSpec,
    SortPolicy,
    alist_resources,
    detail_payload,
    metadata_from_model,
)
from fastapi_rest_query.listing import serialize_row

# ───── App & DB Setup ───────────────────────────

DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(DATABASE_URL, echo=True)
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)
Base = declarative_base()


async def get_db():
    async with SessionLocal() as session:
        yield session


class StatusEnum(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


# ───── Models ────────────────────────────────────

class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    isDelete: Mapped[str] = mapped_column(String(3), default="no")

    users: Mapped[list["User"]] = relationship("User", back_populates="role")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    role_id: Mapped[int] = mapped_column(ForeignKey("roles.id"), nullable=True)
    age: Mapped[int] = mapped_column(nullable=True)
    status: Mapped[StatusEnum] = mapped_column(
        sqlalchemy.Enum(StatusEnum),
        default=StatusEnum.ACTIVE,
        nullable=False
    )
    isDelete: Mapped[str] = mapped_column(String(3), default="no")
    createdAt: Mapped[datetime] = mapped_column(default=lambda: datetime.now(timezone.utc))

    role: Mapped["Role"] = relationship("Role", back_populates="users")


# ───── Query metadata ────────────────────────────

ROLE_META = metadata_from_model(
    Role,
    searchable_fields={"name": SearchSpec()},
    soft_delete_field="isDelete",
    allowed_relation_attributes=("id", "name"),
)

USER_META = metadata_from_model(
    User,
    searchable_fields={"name": SearchSpec(), "email": SearchSpec()},
    sort_policy=SortPolicy(default_field="id", default_direction="DESC", allowed_fields=("id", "name", "age", "createdAt")),
    relations={"role": RelationSpec(model=ROLE_META)},
    soft_delete_field="isDelete",
)


# ───── Lifespan / Seed Data ─────────────────────

@asynccontextmanager
async def lifespan(_: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as session:
        result = await session.execute(select(Role))
        if not result.scalars().first():
            admin = Role(name="admin")
            user = Role(name="user")
            manager = Role(name="manager", isDelete="yes")
            session.add_all([admin, user, manager])
            await session.commit()

            session.add_all([
                User(name="Alice", email="alice@example.com", role=admin, status=StatusEnum.ACTIVE, age=30),
                User(name="Bob", email="bob@example.com", role=user, status=StatusEnum.INACTIVE, age=25),
                User(name="Carol", email="carol@example.com", role=manager, status=StatusEnum.SUSPENDED, age=40),
                User(name="Dave", email="dave@example.com", role=admin, status=StatusEnum.ACTIVE, age=35),
                User(name="Eve", email="eve@example.com", status=StatusEnum.ACTIVE, age=28, isDelete="yes"),
            ])
            await session.commit()

    yield

# ───── FastAPI App ───────────────────────────────

app = FastAPI(lifespan=lifespan)


@app.get("/users")
async def get_users(response: Response, params=RestParams(), session: AsyncSession = Depends(get_db)):
    """
    Examples:

    1. Users older than 26, newest first
       GET /users?age_gt=26&sort=-createdAt

    2. Users whose name or email contains both keywords
       GET /users?q=example alice

    3. Users with their role, filtered and searched on the role
       GET /users?includes=role&role.name=admin&q=adm&_searchs=name,role.name

    4. Only some attributes, no total count
       GET /users?attrs=id,name&_ignoreTotal=yes
    """
    result = await alist_resources(session, User, USER_META, params, response=response)
    return result.items


@app.get("/users/{user_id}")
async def get_user(user_id: int, params=RestParams(), session: AsyncSession = Depends(get_db)):
    user = await session.get(User, user_id)
    if user is None or user.isDelete == "yes":
        raise HTTPException(status_code=404, detail="User not found")
    return detail_payload(serialize_row(user, USER_META), params)


# ───── Run Server ────────────────────────────────

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
