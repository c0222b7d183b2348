# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Run Logger

Writes the per-run log shown in the execution panel. Each entry is appended
to the context's log list, emitted through the engine logger, and written as
a JSON line to <log_dir>/<YYYY-MM-DD>/<execution_id>.log when a log directory
is configured.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..core.logging import log_event
from ..workflow_models import ExecutionLog
from .context import ExecutionContext


_LEVELS = {
    "info": "INFO",
    "success": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
}


class RunLogger:
    """Logs execution events for one run"""

    def __init__(self, context: ExecutionContext, logger: logging.Logger, log_dir: Optional[Path] = None):
        self.context = context
        self.logger = logger
        self.log_file: Optional[Path] = None

        if log_dir is not None:
            day_dir = Path(log_dir) / datetime.now().strftime("%Y-%m-%d")
            day_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = day_dir / f"{context.execution_id}.log"

    def log(self, level: str, message: str, node_id: Optional[str] = None) -> ExecutionLog:
        """Write log entry to context, logger and file"""
        entry = ExecutionLog(
            timestamp=datetime.now().isoformat(),
            node_id=node_id,
            level=level,
            message=message
        )
        self.context.logs.append(entry)

        log_event(
            self.logger,
            message,
            level=_LEVELS.get(level, "INFO"),
            execution_id=self.context.execution_id,
            node_id=node_id,
            run_level=level,
        )

        if self.log_file is not None:
            record = {
                "timestamp": entry.timestamp,
                "execution_id": self.context.execution_id,
                "node_id": node_id,
                "level": level,
                "message": message
            }
            with open(self.log_file, "a") as f:
                f.write(json.dumps(record) + "\n")

        return entry

    def info(self, message: str, node_id: Optional[str] = None) -> ExecutionLog:
        return self.log("info", message, node_id)

    def success(self, message: str, node_id: Optional[str] = None) -> ExecutionLog:
        return self.log("success", message, node_id)

    def warning(self, message: str, node_id: Optional[str] = None) -> ExecutionLog:
        return self.log("warning", message, node_id)

    def error(self, message: str, node_id: Optional[str] = None) -> ExecutionLog:
        return self.log("error", message, node_id)
