from __future__ import annotations

import json
from typing import Any

from ..domain.models import OT_CATEGORIES, PURDUE_LAYERS, SEVERITIES, Verdict
from .json_extractor import JsonExtractor


# response key -> Verdict field
_TEXT_FIELDS = {
    "vulnerabilityType": "vulnerability_type",
    "description": "description",
    "affectedCode": "affected_code",
    "proofOfConcept": "proof_of_concept",
    "affectedProtocol": "affected_protocol",
    "safetyImpact": "safety_impact",
}


class VerdictParser:
    """Turns raw classifier output into a normalized Verdict.

    Classifier output is untrusted: anything that does not match the
    response contract is dropped, and unparseable output becomes a
    negative verdict instead of an error.
    """

    def __init__(self, *, json_extractor: JsonExtractor | None = None) -> None:
        self._json_extractor = json_extractor or JsonExtractor()

    def parse(self, text: str) -> Verdict:
        """Parse classifier text into a Verdict.

        Args:
            text: Raw model output

        Returns:
            Normalized verdict (negative on any parse failure)
        """
        raw = self.decode(text)
        if raw is None:
            return Verdict.negative()
        return self.normalize(raw)

    def decode(self, text: str) -> dict[str, Any] | None:
        """Decode the JSON object in text, or None if there is none."""
        extracted = self._json_extractor.extract(text)
        try:
            parsed = json.loads(extracted)
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, dict) else None

    def normalize(self, raw: dict[str, Any]) -> Verdict:
        """Apply the response contract to an already-decoded object."""
        flag = raw.get("isVulnerabilityPatch", raw.get("is_vulnerability_patch"))
        if flag is not True:
            return Verdict.negative()

        fields: dict[str, str | None] = {}
        for key, attr in _TEXT_FIELDS.items():
            fields[attr] = _text(raw.get(key, raw.get(attr)))

        severity = _choice(raw.get("severity"), SEVERITIES)
        ot_category = _choice(raw.get("otCategory", raw.get("ot_category")), OT_CATEGORIES)
        purdue_layer = _choice(raw.get("purdueLayer", raw.get("purdue_layer")), PURDUE_LAYERS)

        if severity != "Critical":
            fields["safety_impact"] = None

        return Verdict(
            is_vulnerability_patch=True,
            severity=severity,
            ot_category=ot_category,
            purdue_layer=purdue_layer,
            **fields,
        )


def _text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _choice(value: Any, allowed: tuple[str, ...]) -> str | None:
    """Match value case-insensitively against allowed, returning the canonical spelling."""
    if not isinstance(value, str):
        return None
    wanted = value.strip().lower()
    for option in allowed:
        if option.lower() == wanted:
            return option
    return None
