"""File hash and file instance repositories."""

from sqlalchemy.ext.asyncio import AsyncSession

from peridot.db.models.file import FileHashRow, FileInstanceRow
from peridot.models.file import FileHash, FileInstance
from peridot.repositories.base import BaseRepository


class FileHashRepository(BaseRepository):
    entity = "file hash"

    def __init__(self, session: AsyncSession):
        super().__init__(session, FileHashRow)

    @staticmethod
    def to_model(row: FileHashRow) -> FileHash:
        return FileHash(id=row.id, sha256=row.hash_s256, sha1=row.hash_s1)

    async def get(self, filehash_id: int) -> FileHash:
        return self.to_model(await self.get_row(filehash_id))

    async def get_many(self, filehash_ids: list[int]) -> list[FileHash]:
        """IDs with no stored hash are silently left out."""
        return [self.to_model(r) for r in await self.get_rows(filehash_ids)]

    async def add(self, sha256: str, sha1: str) -> int:
        row = await self.create("", hash_s256=sha256, hash_s1=sha1)
        return row.id

    async def delete(self, filehash_id: int) -> None:
        await self.delete_by_id(filehash_id)


class FileInstanceRepository(BaseRepository):
    entity = "file instance"

    def __init__(self, session: AsyncSession):
        super().__init__(session, FileInstanceRow)

    @staticmethod
    def to_model(row: FileInstanceRow) -> FileInstance:
        return FileInstance(
            id=row.id, repopull_id=row.repopull_id, filehash_id=row.filehash_id, path=row.path
        )

    async def get(self, fileinstance_id: int) -> FileInstance:
        return self.to_model(await self.get_row(fileinstance_id))

    async def add(self, repopull_id: int, filehash_id: int, path: str) -> int:
        row = await self.create(
            "file_instances.repopull_id -> repo_pulls.id, file_instances.filehash_id -> file_hashes.id",
            repopull_id=repopull_id,
            filehash_id=filehash_id,
            path=path,
        )
        return row.id

    async def delete(self, fileinstance_id: int) -> None:
        await self.delete_by_id(fileinstance_id)
