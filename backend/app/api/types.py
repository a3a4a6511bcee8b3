from __future__ import annotations

from typing import Annotated

from fastapi import Path, Query

SessionId = Annotated[
    str,
    Path(
        min_length=1,
        max_length=64,
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Opaque guest session identifier",
    ),
]

Latitude = Annotated[float | None, Query(ge=-90, le=90, description="Latitude; hotel when omitted")]
Longitude = Annotated[
    float | None, Query(ge=-180, le=180, description="Longitude; hotel when omitted")
]

SearchQuery = Annotated[
    str,
    Query(min_length=1, max_length=120, description="Free-text place search"),
]
