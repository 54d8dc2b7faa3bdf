from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable

from storefront_sdk.http_client import DownloadedFile

from .errors import PresentedError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = set('/\\:*?"<>|')


@dataclass(frozen=True)
class ExportResult:
    path: Path | None = None
    size: int = 0
    error: PresentedError | None = None

    @property
    def ok(self) -> bool:
        return self.path is not None and self.error is None


def default_file_name(entity: str, export_format: str, today: date | None = None) -> str:
    return f"{entity}-{(today or date.today()).isoformat()}.{export_format}"


def _safe_name(name: str) -> str:
    cleaned = "".join("_" if char in _UNSAFE_CHARS else char for char in Path(name).name).strip(" .")
    return cleaned or "export"


@dataclass
class ExportWriter:
    """Materializes a downloaded export inside ``output_dir``."""

    output_dir: Path
    today: Callable[[], date] = date.today

    def target_path(self, file: DownloadedFile, entity: str, export_format: str) -> Path:
        if file.file_name:
            name = _safe_name(file.file_name)
        else:
            name = default_file_name(entity, export_format, self.today())
        return Path(self.output_dir) / name

    def write(self, file: DownloadedFile, entity: str, export_format: str = "csv") -> Path:
        destination = self.target_path(file, entity, export_format)
        destination.parent.mkdir(parents=True, exist_ok=True)
        # Write next to the target and rename so a failed export never leaves a partial file.
        fd, temp_name = tempfile.mkstemp(dir=destination.parent, prefix=".export-", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(file.content)
            os.replace(temp_name, destination)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
        logger.info("export_written", extra={"entity": entity, "path": str(destination), "size": len(file.content)})
        return destination
