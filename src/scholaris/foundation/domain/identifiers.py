"""IDs that cross the HTTP boundary, validated once on the way in.

Example:
    >>> TenantId("springfield-high").database_name("scholaris_")
    'scholaris_springfield-high'
    >>> RecordId("64b7f0c2e4b0a1a2b3c4d5e6").to_object_id()
    ObjectId('64b7f0c2e4b0a1a2b3c4d5e6')
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from bson import ObjectId

_TENANT_SLUG = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


@dataclass(frozen=True)
class TenantId:
    """A school's slug from ``X-Tenant-ID``.

    Lowercase letters and digits in hyphen-separated runs. The slug ends up
    in a database name, so anything else is rejected with ``ValueError``.
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not _TENANT_SLUG.match(self.value):
            msg = (
                f"Invalid tenant ID format: {self.value!r}. "
                "Use lowercase letters and digits separated by single hyphens."
            )
            raise ValueError(msg)

    def database_name(self, prefix: str) -> str:
        """Name of this tenant's MongoDB database."""
        return f"{prefix}{self.value}"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RecordId:
    """Identifier of a stored document, in its 24-hex-digit string form.

    Records are keyed by BSON ObjectId. Request payloads carry the string
    form; conversion happens once at the boundary so a malformed ID is
    rejected instead of silently matching nothing.

    Raises:
        ValueError: If value is not a valid ObjectId string.
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not ObjectId.is_valid(self.value):
            msg = f"Invalid record ID: {self.value!r}. Must be a 24-character hex ObjectId."
            raise ValueError(msg)

    def to_object_id(self) -> ObjectId:
        """Return the BSON ObjectId for store queries."""
        return ObjectId(self.value)

    def __str__(self) -> str:
        return self.value
