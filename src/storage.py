"""Writes generated report files to a local output directory."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from errors import PersistenceError

logger = logging.getLogger(__name__)


class ReportWriter:
    def __init__(self, output_dir: Union[str, Path]) -> None:
        self._output_dir = Path(output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def write_file(self, filename: str, content: str) -> Path:
        path = self._output_dir / filename
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(str(path), exc.strerror or str(exc)) from exc
        logger.info("Report written to %s", path)
        return path
