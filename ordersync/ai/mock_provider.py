from __future__ import annotations

import re
from typing import Any, Optional

_LABELS = {
    "name": ("name", "customer", "client", "nome", "cliente"),
    "phone": ("phone", "tel", "telephone", "mobile", "cell", "telefone", "whatsapp"),
    "address": ("address", "addr", "delivery", "endereco", "endereço"),
}

_LABEL_LINE = re.compile(r"^\s*(?P<label>[^\W\d_][\w ]{0,24}?)\s*[:\-=]\s*(?P<value>.+?)\s*$", re.UNICODE)
_PHONE = re.compile(r"(?<!\w)\+?\d[\d\s().-]{6,}\d(?!\w)")
_TAGS = re.compile(r"<[^>]+>")


def _label_field(label: str) -> str | None:
    normalized = label.strip().lower()
    for field, aliases in _LABELS.items():
        if normalized in aliases:
            return field
    return None


def _digits(value: str) -> int:
    return sum(1 for char in value if char.isdigit())


class RuleBasedExtractor:
    """Offline parser for labelled notes such as ``Name: ...`` / ``Phone: ...``.

    Returns ``None`` unless it finds a customer name; a bare phone number alone
    is not enough to build a structured note.
    """

    name = "rules"

    def parse(self, raw_text: str) -> Optional[dict[str, Any]]:
        text = _TAGS.sub("", raw_text or "")
        fields: dict[str, str] = {}
        leftovers: list[str] = []

        for line in text.splitlines():
            if not line.strip():
                continue
            match = _LABEL_LINE.match(line)
            field = _label_field(match.group("label")) if match else None
            if field and field not in fields:
                fields[field] = match.group("value")
            else:
                leftovers.append(line.strip())

        if "phone" not in fields:
            phone = _PHONE.search(text)
            if phone and _digits(phone.group(0)) >= 7:
                fields["phone"] = phone.group(0).strip()

        if not fields.get("name"):
            return None

        return {
            "name": fields.get("name", ""),
            "phone": fields.get("phone", ""),
            "address": fields.get("address", ""),
            "cleanNote": " ".join(leftovers),
        }


class NullExtractor:
    name = "none"

    def parse(self, raw_text: str) -> Optional[dict[str, Any]]:
        return None
