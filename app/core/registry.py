"""Static badge-class registries.

Two lookup tables keyed by the issuer's badge class id:

  badge_class_id → course_id            (which course the badge certifies)
  badge_class_id → expected access code (shared secret handed out in class)

Both are built once at import time and exposed read-only.  A badge class
present in the course table but missing from the access-code table is a
deployment mistake, not a bad request; the validator reports it as 500.

The built-in tables can be replaced wholesale through BADGE_COURSES_JSON
and BADGE_ACCESS_CODES_JSON (JSON objects of string → string).
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

_DEFAULT_COURSES: dict[str, str] = {
    "g_AMm-vOSC6q4_oB2EMwKw": "PYSJ_415",
}

_DEFAULT_ACCESS_CODES: dict[str, str] = {
    "g_AMm-vOSC6q4_oB2EMwKw": "PYSJ_415_GH",
}


@dataclass(frozen=True)
class BadgeRegistry:
    courses: Mapping[str, str]
    access_codes: Mapping[str, str]

    @staticmethod
    def from_tables(
        courses: Mapping[str, str], access_codes: Mapping[str, str]
    ) -> BadgeRegistry:
        return BadgeRegistry(
            courses=MappingProxyType(dict(courses)),
            access_codes=MappingProxyType(dict(access_codes)),
        )

    def course_for(self, badge_class_id: str) -> str | None:
        return self.courses.get(badge_class_id)

    def access_code_for(self, badge_class_id: str) -> str | None:
        return self.access_codes.get(badge_class_id)


def _load_table(name: str, default: dict[str, str]) -> dict[str, str]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        table = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"{name} must be a JSON object ({e.msg})") from None
    if not isinstance(table, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in table.items()
    ):
        raise ValueError(f"{name} must map string ids to strings")
    return table


def load_registry() -> BadgeRegistry:
    return BadgeRegistry.from_tables(
        _load_table("BADGE_COURSES_JSON", _DEFAULT_COURSES),
        _load_table("BADGE_ACCESS_CODES_JSON", _DEFAULT_ACCESS_CODES),
    )


REGISTRY = load_registry()


def get_registry() -> BadgeRegistry:
    return REGISTRY
