from typing import Dict, List, Optional, Sequence, Tuple

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from viz_gateway.core.database import DatabaseManager
from viz_gateway.core.errors import PublishError
from viz_gateway.services.publisher.base import DashboardPublisher
from viz_gateway.services.store import SQLVisualizationStore


class FakePublisher(DashboardPublisher):
    """
    Scripted in-memory rendering service.

    ``published`` mirrors what currently exists on the service side.
    """

    def __init__(
        self,
        slugs: Sequence[str] = (),
        fail_upload_at: Optional[int] = None,
        fail_delete: Sequence[str] = (),
    ):
        self._slugs = list(slugs)
        self.fail_upload_at = fail_upload_at
        self.fail_delete = set(fail_delete)
        self.upload_calls: List[Tuple[str, str]] = []
        self.delete_calls: List[Tuple[str, str]] = []
        self.published: Dict[str, str] = {}
        self.upload_error: Optional[PublishError] = None

    async def upload(self, payload: str, organization_id: str) -> str:
        index = len(self.upload_calls)
        self.upload_calls.append((payload, organization_id))
        if index == self.fail_upload_at:
            self.upload_error = PublishError("upload refused", status_code=500)
            raise self.upload_error
        slug = self._slugs[index] if index < len(self._slugs) else f"slug-{index}"
        self.published[slug] = payload
        return slug

    async def delete(self, slug: str, organization_id: str) -> None:
        self.delete_calls.append((slug, organization_id))
        if slug in self.fail_delete:
            raise PublishError(f"cannot delete {slug}", status_code=500, slug=slug)
        self.published.pop(slug, None)


@pytest_asyncio.fixture
async def db_manager(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'visualizations.db'}")
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def store(db_manager):
    return SQLVisualizationStore(db_manager)


async def count_rows(db_manager: DatabaseManager, model) -> int:
    async with db_manager.session() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()
