"""Event name and trigger type constants."""

from __future__ import annotations

import re
from typing import Literal

TriggerTypeName = Literal["sync", "async"]

# Callbacks registered under this name receive every triggered event.
ALL_EVENT = "all"

EVENT_SPLITTER = re.compile(r"\s+")

TYPE_UNSET = 0
TYPE_SYNC = 1
TYPE_ASYNC = 2

TYPE_NUMBERS: dict[str, int] = {"sync": TYPE_SYNC, "async": TYPE_ASYNC}
TYPE_NAMES: dict[int, TriggerTypeName] = {TYPE_SYNC: "sync", TYPE_ASYNC: "async"}
