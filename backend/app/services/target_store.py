"""
External target registry (linked repositories).

external_action nodes refer to targets by name. Targets are stored as a JSON
file in ~/.flowbuilder/targets/.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from urllib.parse import urlparse

from app.errors import ExternalTargetError
from app.models.workflow import ExternalTarget

ALLOWED_HOST = "github.com"


def normalize_address(address: str) -> str:
    """Trim whitespace and a trailing slash."""
    return address.strip().rstrip("/")


def validate_address(address: str) -> str:
    """Return the normalized address or raise ExternalTargetError."""
    clean = normalize_address(address)
    if not clean:
        raise ExternalTargetError("Address is required")
    parsed = urlparse(clean)
    if parsed.scheme not in ("http", "https") or not parsed.netloc.lower().endswith(ALLOWED_HOST):
        raise ExternalTargetError("Invalid URL")
    if not parsed.path.strip("/"):
        raise ExternalTargetError("Invalid URL")
    return clean


class LocalTargetStore:
    """Stores registered targets in a single JSON file."""

    def __init__(self, base_dir: str | Path | None = None):
        if base_dir is None:
            base_dir = Path.home() / ".flowbuilder" / "targets"
        self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def _path(self) -> Path:
        return self._base / "targets.json"

    def _write(self, targets: list[ExternalTarget]) -> None:
        with open(self._path, "w") as f:
            json.dump([t.model_dump(mode="json") for t in targets], f, indent=2)

    def list_all(self) -> list[ExternalTarget]:
        if not self._path.exists():
            return []
        with open(self._path) as f:
            return [ExternalTarget.model_validate(d) for d in json.load(f)]

    def get_by_name(self, name: str) -> ExternalTarget | None:
        for target in self.list_all():
            if target.name == name:
                return target
        return None

    def register(self, address: str) -> ExternalTarget:
        """Validate and add a target; new targets start connected."""
        clean = validate_address(address)
        targets = self.list_all()
        if any(t.address.lower() == clean.lower() for t in targets):
            raise ExternalTargetError("Target already exists")
        target = ExternalTarget(
            id=str(uuid.uuid4()),
            name=clean.split("/")[-1] or "Unknown Repo",
            address=clean,
            connected=True,
        )
        targets.append(target)
        self._write(targets)
        return target

    def toggle(self, target_id: str) -> ExternalTarget | None:
        """Flip the connected flag. Returns None if the target is unknown."""
        targets = self.list_all()
        for i, target in enumerate(targets):
            if target.id == target_id:
                targets[i] = target.model_copy(update={"connected": not target.connected})
                self._write(targets)
                return targets[i]
        return None


def get_target_store() -> LocalTargetStore:
    return LocalTargetStore()
