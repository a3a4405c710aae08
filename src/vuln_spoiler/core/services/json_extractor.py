from __future__ import annotations

import json


class JsonExtractor:
    """Domain service for extracting JSON from LLM responses.

    Handles JSON objects wrapped in markdown fences or surrounding prose.
    """

    def extract(self, text: str) -> str:
        """Extract the outermost JSON object from text.

        Args:
            text: Raw text potentially containing JSON

        Returns:
            Compact JSON string, or the original text when no valid object is found
        """
        start = text.find('{')
        end = text.rfind('}')

        if start == -1 or end == -1 or end <= start:
            return text

        try:
            parsed = json.loads(text[start:end + 1])
            return json.dumps(parsed, ensure_ascii=False)
        except json.JSONDecodeError:
            return text
