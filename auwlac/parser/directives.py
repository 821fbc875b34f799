"""
Recognises the page directives in the leading comment region of a file:

    // @page /users/profile
    // @title User profile
    // @guard requireAuth

The region runs from the top of the file to the first line of code that is
not an import. Only `//` comment lines are read; text inside block comments
and directives that follow code are ignored.
"""

import re
from typing import Dict, Iterator, Optional

from ..config.config import DIRECTIVE_CONFIG, PAGE_DIRECTIVE_PATTERN
from .classes import PageMetadata

IMPORT_END_RE = re.compile(r"""['"][^'"]*['"]\s*;?\s*$""")


def _leading_comment_lines(source_text: str) -> Iterator[str]:
    in_block = False
    in_import = False
    for line in source_text.splitlines():
        stripped = line.strip()
        if in_block:
            in_block = "*/" not in stripped
            continue
        if not stripped:
            continue
        if stripped.startswith("/*"):
            in_block = "*/" not in stripped[2:]
            continue
        if stripped.startswith("//"):
            yield stripped
            continue
        if in_import or re.match(r"import\b", stripped):
            in_import = not IMPORT_END_RE.search(stripped)
            continue
        return


def normalize_route(path: str) -> str:
    path = path.strip()
    return path if path.startswith("/") else "/" + path


def parse_directives(source_text: str) -> PageMetadata:
    """Reads the page flag, route path, title, description and guard of a file."""
    is_page = False
    route_path: Optional[str] = None
    fields: Dict[str, str] = {}

    for line in _leading_comment_lines(source_text):
        page_match = PAGE_DIRECTIVE_PATTERN.search(line)
        if page_match:
            is_page = True
            path = (page_match.group(1) or "").strip()
            if path:
                route_path = normalize_route(path)
            continue

        for config in DIRECTIVE_CONFIG.values():
            match = config["pattern"].match(line)
            if match:
                fields[config["field"]] = match.group(1).strip()

    return PageMetadata(is_page=is_page, route_path=route_path, **fields)
