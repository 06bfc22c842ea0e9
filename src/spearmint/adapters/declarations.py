"""Load the declarative ``spearmint.toml`` configuration."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from spearmint.config.errors import ConfigInconsistentError, ConfigurationError
from spearmint.domain.types import DeclaredResource, ResourceKind

if TYPE_CHECKING:
    from collections.abc import Iterable

DEFAULT_CONFIG_TEMPLATE = """\
universe_id = 123456789

[output]
path = "src/shared/modules/Products.luau"
typescript = true

[products.example_product]
type = "dev_product"
name = "Example Product"
price = 100
description = "An example developer product"

[products.example_gamepass]
type = "gamepass"
name = "Example Gamepass"
price = 500
description = "An example gamepass"
"""


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ConfigBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ProductTable(ConfigBaseModel):
    kind: ResourceKind = Field(alias="type")
    name: str = Field(min_length=1)
    price: int = Field(ge=0)
    description: str | None = None
    image: str | None = None
    product_id: int | None = Field(default=None, gt=0)
    # Only meaningful for game passes.
    offsale: bool = False

    _normalize_image = field_validator("image", mode="before")(_blank_to_none)


class OutputTable(ConfigBaseModel):
    path: str
    typescript: bool = False


class ConfigDocument(ConfigBaseModel):
    universe_id: int = Field(gt=0)
    output: OutputTable | None = None
    products: dict[str, ProductTable] = Field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class OutputSettings:
    path: str
    typescript: bool = False


@dataclass(frozen=True, slots=True)
class DeclaredConfig:
    """Validated configuration shared by every resource of one run."""

    universe_id: int
    resources: tuple[DeclaredResource, ...]
    output: OutputSettings | None = None

    def get(self, key: str) -> DeclaredResource | None:
        return next((resource for resource in self.resources if resource.key == key), None)


def load_declared_config(path: Path) -> DeclaredConfig:
    """Read and validate the configuration at ``path``.

    Relative image paths are resolved against the configuration's directory.
    """

    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Failed to read config file: {path}") from exc
    return parse_declared_config(text, base_dir=path.parent)


def parse_declared_config(text: str, *, base_dir: Path | None = None) -> DeclaredConfig:
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Failed to parse config file: {exc}") from exc
    try:
        document = ConfigDocument.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config file: {exc}") from exc

    resources = tuple(
        _to_resource(key, table, base_dir=base_dir)
        for key, table in sorted(document.products.items())
    )
    validate_unique_names(resources)

    output = (
        OutputSettings(path=document.output.path, typescript=document.output.typescript)
        if document.output is not None
        else None
    )
    return DeclaredConfig(universe_id=document.universe_id, resources=resources, output=output)


def validate_unique_names(resources: Iterable[DeclaredResource]) -> None:
    """Reject two resources of the same kind sharing a display name."""

    seen: dict[tuple[ResourceKind, str], str] = {}
    for resource in resources:
        marker = (resource.kind, resource.name)
        existing = seen.get(marker)
        if existing is not None:
            raise ConfigInconsistentError(
                f'Duplicate {resource.kind.label} name "{resource.name}" '
                f'found in keys "{existing}" and "{resource.key}"'
            )
        seen[marker] = resource.key


def write_default_config(path: Path, *, force: bool = False) -> Path:
    if path.exists() and not force:
        raise ConfigurationError(
            f"Config file already exists: {path}\nUse --force to overwrite."
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    return path


def _to_resource(key: str, table: ProductTable, *, base_dir: Path | None) -> DeclaredResource:
    image: Path | None = None
    if table.image is not None:
        image = Path(table.image)
        if base_dir is not None and not image.is_absolute():
            image = base_dir / image
    return DeclaredResource(
        key=key,
        kind=table.kind,
        name=table.name,
        price=table.price,
        description=table.description,
        image=image,
        product_id=table.product_id,
        offsale=table.offsale,
    )
