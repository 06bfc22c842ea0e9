"""HTTP gateway for Roblox developer products and game passes."""

from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from logging import getLogger
from typing import TYPE_CHECKING, Self

import httpx
from pydantic import BaseModel, ValidationError

from spearmint.adapters.http_resilience import ResilienceConfig, ResilientClient
from spearmint.config.roblox import RobloxConfig, get_roblox_config
from spearmint.domain.errors import AssetUnreadableError, RateLimitedError, RemoteRejectedError
from spearmint.domain.ports.gateway import ResourceFields
from spearmint.domain.types import RemoteId, ResourceKind

from .schema import DevProductResponse, ErrorResponse, GamepassResponse

if TYPE_CHECKING:
    from collections.abc import Coroutine
    from pathlib import Path
    from types import TracebackType

log = getLogger(__name__)

type FormFields = dict[str, tuple[str | None, bytes] | tuple[str, bytes, str]]


@dataclass(frozen=True, slots=True)
class _Endpoint:
    collection: str
    label: str
    response_model: type[DevProductResponse] | type[GamepassResponse]

    def collection_url(self, universe_id: int) -> str:
        return self.collection.format(universe_id=universe_id)

    def item_url(self, universe_id: int, remote_id: RemoteId) -> str:
        return f"{self.collection_url(universe_id)}/{remote_id}"


_ENDPOINTS: dict[ResourceKind, _Endpoint] = {
    ResourceKind.DEV_PRODUCT: _Endpoint(
        collection="/developer-products/v2/universes/{universe_id}/developer-products",
        label="dev product",
        response_model=DevProductResponse,
    ),
    ResourceKind.GAMEPASS: _Endpoint(
        collection="/game-passes/v1/universes/{universe_id}/game-passes",
        label="gamepass",
        response_model=GamepassResponse,
    ),
}


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _parse_retry_after(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max((when - datetime.now(UTC)).total_seconds(), 0.0)


def _response_detail(response: httpx.Response) -> str:
    try:
        payload = ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return response.text
    return payload.detail or response.text


class RobloxGateway:
    """Remote mutation gateway backed by the Open Cloud REST API.

    The gateway is synchronous towards the reconciler: each call is driven to
    completion on an ``asyncio.Runner`` owned by the gateway, so one HTTP client
    and one rate limiter serve the whole run. Use it as a context manager.
    """

    def __init__(
        self,
        *,
        universe_id: int,
        config: RobloxConfig | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.universe_id = universe_id
        self.config = config or get_roblox_config()
        self.client_factory = client_factory
        self._runner: asyncio.Runner | None = None
        self._client: ResilientClient | None = None

    def __enter__(self) -> Self:
        self._runner = asyncio.Runner()
        self._client = self._runner.run(self._open_client())
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        runner, client = self._runner, self._client
        self._runner = None
        self._client = None
        if runner is None:
            return
        try:
            if client is not None:
                runner.run(client.aclose())
        finally:
            runner.close()

    def create(
        self,
        kind: ResourceKind,
        fields: ResourceFields,
        *,
        image: Path | None = None,
    ) -> RemoteId:
        endpoint = _ENDPOINTS[kind]
        response = self._run(
            self._send(
                "POST",
                endpoint.collection_url(self.universe_id),
                self._form(fields, image=image),
                action=f"create {endpoint.label}",
            )
        )
        try:
            payload: BaseModel = endpoint.response_model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RemoteRejectedError(
                f"Failed to parse {endpoint.label} response",
                status_code=response.status_code,
            ) from exc
        if isinstance(payload, DevProductResponse):
            return payload.product_id
        if isinstance(payload, GamepassResponse):
            return payload.game_pass_id
        raise RemoteRejectedError(f"Unexpected {endpoint.label} response")

    def update(
        self,
        kind: ResourceKind,
        remote_id: RemoteId,
        fields: ResourceFields,
        *,
        image: Path | None = None,
    ) -> None:
        endpoint = _ENDPOINTS[kind]
        self._run(
            self._send(
                "PATCH",
                endpoint.item_url(self.universe_id, remote_id),
                self._form(fields, image=image, clear_missing=True),
                action=f"update {endpoint.label}",
            )
        )

    def _run[T](self, coro: Coroutine[object, object, T]) -> T:
        if self._runner is None:
            coro.close()
            raise RuntimeError("RobloxGateway must be entered before use")
        return self._runner.run(coro)

    async def _open_client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience)

    async def _send(
        self,
        method: str,
        url: str,
        form: FormFields,
        *,
        action: str,
    ) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("RobloxGateway must be entered before use")
        try:
            response = await self._client.request(
                method,
                url,
                files=form,
                headers={"x-api-key": self.config.api_key},
            )
        except httpx.HTTPError as exc:
            raise RemoteRejectedError(f"Failed to {action}: {exc}") from exc

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            retry_after = _parse_retry_after(response.headers.get("retry-after"))
            log.debug(f"Roblox rate limited {action} (retry-after={retry_after})")
            raise RateLimitedError(f"Rate limited while trying to {action}", retry_after=retry_after)

        if not response.is_success:
            detail = _response_detail(response)
            raise RemoteRejectedError(
                f"Failed to {action}: {response.status_code} - {detail}",
                status_code=response.status_code,
            )
        return response

    def _form(
        self,
        fields: ResourceFields,
        *,
        image: Path | None,
        clear_missing: bool = False,
    ) -> FormFields:
        # Open Cloud only accepts multipart bodies; a ``None`` filename sends a plain field.
        form: FormFields = {
            "name": (None, fields.name.encode()),
            "price": (None, str(fields.price).encode()),
        }
        if fields.description is not None:
            form["description"] = (None, fields.description.encode())
        elif clear_missing:
            # PATCH leaves omitted fields untouched; an empty value clears the description.
            form["description"] = (None, b"")
        if fields.for_sale is not None:
            form["isForSale"] = (None, b"true" if fields.for_sale else b"false")
        if image is not None:
            try:
                content = image.read_bytes()
            except OSError as exc:
                raise AssetUnreadableError(image, exc) from exc
            content_type = mimetypes.guess_type(image.name)[0] or "application/octet-stream"
            form["imageFile"] = (image.name, content, content_type)
        return form

