from __future__ import annotations

import json
import logging
import re
from typing import Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class ClassifierError(Exception):
    pass


def build_prompt(text: str, keyword_map: Dict[str, List[str]]) -> str:
    departments = "\n".join(
        f"- {name}: {', '.join(words[:12])}" for name, words in keyword_map.items()
    )
    return (
        "You route civic complaints in an Indian city to the responsible department.\n"
        f"Departments and typical keywords:\n{departments}\n\n"
        f"Complaint: {text}\n\n"
        "Answer with JSON only: "
        '{"department": "<one of the department names above>", '
        '"confidence": <number between 0 and 1>, "reasoning": "<one sentence>"}'
    )


def parse_reply(reply: str) -> dict:
    match = re.search(r"\{.*\}", reply or "", re.DOTALL)
    if not match:
        raise ClassifierError("classifier reply has no JSON object")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ClassifierError(f"classifier reply is not JSON: {exc}") from exc
    if not isinstance(data, dict) or "department" not in data:
        raise ClassifierError("classifier reply missing department")
    try:
        confidence = float(data.get("confidence", 0.0))
    except (TypeError, ValueError):
        confidence = 0.0
    return {
        "department": str(data["department"]).strip(),
        "confidence": max(0.0, min(confidence, 1.0)),
        "reasoning": str(data.get("reasoning") or ""),
    }


class GeminiClassifier:
    """Text classifier backed by the Gemini generateContent REST endpoint."""

    def __init__(self, api_key: str, url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self._client = client

    async def classify(self, text: str, keyword_map: Dict[str, List[str]]) -> dict:
        if not self.api_key:
            raise ClassifierError("classifier API key not configured")

        payload = {"contents": [{"parts": [{"text": build_prompt(text, keyword_map)}]}]}
        try:
            if self._client is not None:
                resp = await self._client.post(self.url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(self.url, params={"key": self.api_key}, json=payload)
            resp.raise_for_status()
            body = resp.json()
            reply = body["candidates"][0]["content"]["parts"][0]["text"]
        except httpx.HTTPError as exc:
            raise ClassifierError(f"classifier request failed: {exc}") from exc
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise ClassifierError(f"unexpected classifier response: {exc}") from exc

        return parse_reply(reply)
