"""User repository."""

from sqlalchemy.ext.asyncio import AsyncSession

from peridot.db.models.user import UserRow
from peridot.errors.exceptions import MalformedInputError, NotFoundError
from peridot.models.common import MAX_ID
from peridot.models.enums import UserAccessLevel
from peridot.models.user import User
from peridot.repositories.base import BaseRepository

MAX_USER_ID = MAX_ID


class UserRepository(BaseRepository):
    entity = "user"

    def __init__(self, session: AsyncSession):
        super().__init__(session, UserRow)

    @staticmethod
    def to_model(row: UserRow) -> User:
        return User(
            id=row.id,
            name=row.name,
            github=row.github,
            access=UserAccessLevel.from_int(row.access_level),
        )

    async def get_all(self) -> list[User]:
        return [self.to_model(r) for r in await self.list_rows()]

    async def get(self, user_id: int) -> User:
        return self.to_model(await self.get_row(user_id))

    async def get_by_github(self, github: str) -> User:
        rows = await self.list_rows(UserRow.github == github)
        if not rows:
            raise NotFoundError("user", github, field="GitHub name")
        return self.to_model(rows[0])

    async def add(self, user_id: int, name: str, github: str, access: UserAccessLevel) -> None:
        if user_id > MAX_USER_ID:
            raise MalformedInputError(
                f"user id cannot be greater than {MAX_USER_ID}; received {user_id}"
            )
        await self.create(
            "users.id unique",
            id=user_id,
            name=name,
            github=github,
            access_level=access.code,
        )

    async def update_user(self, user_id: int, new_name: str, new_github: str, new_access: UserAccessLevel) -> None:
        await self.update_by_id(user_id, name=new_name, github=new_github, access_level=new_access.code)

    async def update_name_only(self, user_id: int, new_name: str) -> None:
        await self.update_by_id(user_id, name=new_name)
