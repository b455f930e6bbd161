"""Version number allocation and object-store key layout.

Keys follow ``{template}/V{n}/Raw/{file}``. Once a template record exists its
counter is authoritative; before that, the highest ``V{n}`` segment found in a
storage listing seeds the counter.
"""

from __future__ import annotations

import posixpath
import re
from typing import Iterable

RAW_FOLDER = "Raw"

_VERSION_SEGMENT = re.compile(r"^V(\d+)$")


def template_prefix(template_name: str) -> str:
    return f"{template_name}/"


def build_storage_path(template_name: str, version_number: int, file_name: str) -> str:
    return f"{template_name}/V{version_number}/{RAW_FOLDER}/{file_name}"


def next_version_number(existing_max_version: int) -> int:
    return existing_max_version + 1


def max_version_in_keys(template_name: str, keys: Iterable[str]) -> int:
    """Highest ``V<n>`` directly under ``template_name/`` in ``keys``, or 0.

    Keys outside the template's prefix and segments that do not parse as
    ``V<integer>`` are ignored.
    """
    prefix = template_prefix(template_name)
    highest = 0
    for key in keys:
        if not key.startswith(prefix):
            continue
        segment = key[len(prefix):].split("/", 1)[0]
        match = _VERSION_SEGMENT.match(segment)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def sanitize_file_name(file_name: str | None) -> str | None:
    if not file_name:
        return None
    name = posixpath.basename(file_name.replace("\\", "/"))
    # strip dangerous characters
    return name.replace("\0", "").strip() or None


def file_extension(file_name: str) -> str:
    """Lower-cased extension including the dot, or ``""`` when there is none."""
    _, ext = posixpath.splitext(file_name)
    return ext.lower()
