from datetime import datetime
from typing import Any, Dict, Optional

import attrs


@attrs.define
class UndeliveredMessage:
    id: int
    topic: str
    key: str
    payload: Dict[str, Any]
    attempts: int = 0
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None
