"""HTTP clients for the Users and Products services.

``fetch_all`` never raises: a failed or timed out fetch is logged here and
reported to the caller as an empty snapshot.
"""
import asyncio
import logging
from typing import ClassVar, Generic, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter

from orderhub.core.config import settings
from orderhub.schemas.catalog import ProductDto, UserDto

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=BaseModel)


class CatalogClient(Generic[EntityT]):
    resource: ClassVar[str]
    path: ClassVar[str]
    model: ClassVar[Type[BaseModel]]

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport
        self._adapter = TypeAdapter(List[self.model])

    async def fetch_all(self) -> List[EntityT]:
        try:
            logger.info(f"Fetching {self.resource} from {self.base_url}{self.path}")
            items = await asyncio.wait_for(self._get_all(), timeout=self.timeout)
            logger.info(f"Successfully fetched {len(items)} {self.resource}")
            return items
        except asyncio.TimeoutError:
            logger.error(f"Timed out fetching {self.resource} after {self.timeout}s")
            return []
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.error(f"Error fetching {self.resource}: {e}", exc_info=True)
            return []

    async def _get_all(self) -> List[EntityT]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport
        ) as client:
            response = await client.get(self.path)
            response.raise_for_status()
            payload = response.json()

        if payload is None:
            return []
        return self._adapter.validate_python(payload)


class UserCatalogClient(CatalogClient[UserDto]):
    resource = "users"
    path = "/api/users"
    model = UserDto


class ProductCatalogClient(CatalogClient[ProductDto]):
    resource = "products"
    path = "/api/products"
    model = ProductDto


def get_user_client() -> UserCatalogClient:
    return UserCatalogClient(settings.users_service_url, timeout=settings.catalog_timeout_seconds)


def get_product_client() -> ProductCatalogClient:
    return ProductCatalogClient(settings.products_service_url, timeout=settings.catalog_timeout_seconds)
