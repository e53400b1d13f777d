from __future__ import annotations

from typing import Any, Optional, Protocol


class OrderTextExtractor(Protocol):
    name: str

    def parse(self, raw_text: str) -> Optional[dict[str, Any]]:
        ...
