"""Relation settings resolved from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class RelationSettings:
    """Where relation metadata lives and how cascades are bounded.

    Attributes:
        relations_path: Directory holding relation YAML files
        cascade_concurrency: Max concurrent per-identifier cascade updates,
            or None to leave concurrency to the storage client
    """

    relations_path: Path
    cascade_concurrency: int | None = None

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> RelationSettings:
        """Create settings from environment variables.

        Resolution order for the relations directory:
        1. DOCRELATE_RELATIONS_PATH env var
        2. {base_path}/relations
        3. ./relations

        DOCRELATE_CASCADE_CONCURRENCY, when set, must be a positive integer.

        Raises:
            ValueError: If DOCRELATE_CASCADE_CONCURRENCY is not a positive integer
        """
        env_path = os.environ.get("DOCRELATE_RELATIONS_PATH")
        if env_path:
            relations_path = Path(env_path)
        elif base_path:
            relations_path = base_path / "relations"
        else:
            relations_path = Path("relations")

        return cls(
            relations_path=relations_path,
            cascade_concurrency=_parse_concurrency(
                os.environ.get("DOCRELATE_CASCADE_CONCURRENCY")
            ),
        )


def _parse_concurrency(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"DOCRELATE_CASCADE_CONCURRENCY must be an integer, got {raw!r}"
        ) from None
    if value < 1:
        raise ValueError(
            f"DOCRELATE_CASCADE_CONCURRENCY must be positive, got {value}"
        )
    return value
