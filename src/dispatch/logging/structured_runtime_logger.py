import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.config.settings import settings


class StructuredRuntimeLogger:
    """
    Lightweight JSON-lines logger for context, decorator and completion paths.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(settings.RUNTIME_LOGGER_NAME)

    def emit(self, event_type: str, level: int = logging.INFO, exc_info: bool = False, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        payload.update(fields)
        self._logger.log(level, json.dumps(payload, default=str, ensure_ascii=True), exc_info=exc_info)
