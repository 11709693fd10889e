"""JSON log output.

One object per line. Records emitted while a document is being processed
carry its label and nesting depth at the top level, so log processors can
group everything that happened to one archive member or cover art image.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord has; anything else was passed via extra=
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", None, None).__dict__
) | {"message", "asctime", "document", "doc_depth", "doc_tag"}


class JSONFormatter(logging.Formatter):
    """Format records as JSON objects.

    Keys: timestamp (ISO-8601 UTC), level, logger, message, then document
    and depth inside a document, extra for values passed via ``extra=``
    and exception when exc_info is set.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        document = getattr(record, "document", None)
        if document:
            entry["document"] = document
            entry["depth"] = getattr(record, "doc_depth", 0)

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)
