from sqlmodel import Field, SQLModel


class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    name: str
    username: str = Field(unique=True, index=True)
    timezone: str = "UTC"


class User(UserBase, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)


class UserCreate(SQLModel):
    email: str
    name: str
    timezone: str | None = None


class UserPublic(SQLModel):
    id: int
    name: str
    username: str
    timezone: str
