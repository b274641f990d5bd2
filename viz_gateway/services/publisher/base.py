"""DashboardPublisher — Contract for the external rendering service."""

from abc import ABC, abstractmethod


class DashboardPublisher(ABC):
    """
    Publishes rendered dashboards into a tenant of the rendering service.

    ``delete`` is not idempotent on the service side: callers must only
    delete slugs they know were uploaded.
    """

    @abstractmethod
    async def upload(self, payload: str, organization_id: str) -> str:
        """Publish ``payload`` and return the service-assigned slug.

        Raises:
            PublishError: the service rejected or never acknowledged the upload.
        """

    @abstractmethod
    async def delete(self, slug: str, organization_id: str) -> None:
        """Remove a previously published dashboard.

        Raises:
            PublishError: the service could not remove it.
        """
