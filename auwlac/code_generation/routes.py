"""Route metadata for page components."""

import os
import re
from typing import Optional

from pydantic import BaseModel

from ..config.config import HOME_COMPONENT_NAMES, PAGE_NAME_SUFFIX
from ..parser.classes import PageMetadata


class RouteMeta(BaseModel):
    path: str
    component: str
    title: Optional[str] = None
    description: Optional[str] = None
    guard: Optional[str] = None
    source_file: Optional[str] = None


def _file_stem(file_path: Optional[str]) -> str:
    if not file_path or file_path == "<stdin>":
        return ""
    return os.path.basename(file_path).split(".")[0]


def _kebab_case(name: str) -> str:
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", name)
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1-\2", name)
    return re.sub(r"[^A-Za-z0-9]+", "-", name).strip("-").lower()


def default_route(component_name: Optional[str], file_path: Optional[str] = None) -> str:
    """
    The route of a page without an explicit path: home components map to
    `/`, anything else to its kebab-cased name without the `Page` suffix.
    """
    stem = _file_stem(file_path)
    for candidate in (component_name, stem):
        if candidate and candidate.lower() in HOME_COMPONENT_NAMES:
            return "/"

    name = component_name or stem
    if name.endswith(PAGE_NAME_SUFFIX) and len(name) > len(PAGE_NAME_SUFFIX):
        name = name[: -len(PAGE_NAME_SUFFIX)]
    slug = _kebab_case(name)
    return "/" + slug if slug else "/"


def build_route(metadata: PageMetadata, component_name: str, file_path: Optional[str] = None) -> Optional[RouteMeta]:
    if not metadata.is_page:
        return None
    return RouteMeta(
        path=metadata.route_path or default_route(component_name, file_path),
        component=component_name,
        title=metadata.title,
        description=metadata.description,
        guard=metadata.guard,
        source_file=file_path,
    )
