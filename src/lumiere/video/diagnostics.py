"""Write-only JSON records of video API traffic for offline debugging."""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx

from lumiere.common.logging import get_logger

SUBMISSION_FILE = "start_generation_response.json"
POLLING_FILE = "polling_responses.json"
ERROR_FILE = "error_log.json"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def response_record(response: httpx.Response, body: Any) -> dict[str, Any]:
    return {
        "status": response.status_code,
        "statusText": response.reason_phrase,
        "headers": dict(response.headers),
        "body": body,
    }


class DiagnosticsRecorder:
    """Snapshots submission and poll responses into ``directory``.

    Each file is rewritten in full on every update; nothing is appended.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)
        self.polls: list[dict[str, Any]] = []
        self.started = time.time()
        self.logger = get_logger("video_diagnostics", directory=str(self.directory))

    @property
    def submission_path(self) -> Path:
        return self.directory / SUBMISSION_FILE

    @property
    def polling_path(self) -> Path:
        return self.directory / POLLING_FILE

    @property
    def error_path(self) -> Path:
        return self.directory / ERROR_FILE

    def _write(self, path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, default=str))

    def record_submission(self, response: httpx.Response, body: Any) -> None:
        self._write(self.submission_path, response_record(response, body))

    def record_poll(self, response: httpx.Response, body: Any) -> None:
        record = {"pollCount": len(self.polls) + 1, "timestamp": _now()}
        record.update(response_record(response, body))
        self.polls.append(record)
        self._write(self.polling_path, self.polls)

    def record_error(self, error: BaseException) -> None:
        try:
            self._write(
                self.error_path,
                {
                    "timestamp": _now(),
                    "duration": round(time.time() - self.started, 3),
                    "error": {"name": type(error).__name__, "message": str(error)},
                },
            )
        except OSError as e:
            self.logger.warning("error_log_write_failed", error=str(e))
        else:
            self.logger.info("error_log_saved", path=str(self.error_path))

    def files(self) -> list[Path]:
        return [
            p for p in (self.submission_path, self.polling_path, self.error_path) if p.exists()
        ]
