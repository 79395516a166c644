import sys
from typing import Any, Dict

from requests import HTTPError, Session

from depimpact.github import MODULE_NAME, MODULE_VERSION

DEFAULT_MODEL = "gemini-2.0-flash"
API_URL = "https://generativelanguage.googleapis.com/v1beta"
REQUEST_TIMEOUT = 300

# Gemini 2.0 Flash accepts 1M input tokens; leave room for the response.
DEFAULT_MAX_INPUT_TOKENS = 900_000
WARNING_RATIO = 0.9


class GeminiError(Exception):
    """Raised when Gemini rejects or cannot answer a prompt."""


class GeminiClient:
    """Thin client for the Gemini generateContent and countTokens endpoints."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_input_tokens: int = DEFAULT_MAX_INPUT_TOKENS,
        api_url: str = API_URL,
    ):
        self.model = model
        self.max_input_tokens = max_input_tokens
        self._model_url = f"{api_url.rstrip('/')}/models/{model}"
        self._session = Session()
        self._session.headers.update(
            {
                "Content-Type": "application/json",
                "User-Agent": f"{MODULE_NAME}/{MODULE_VERSION}",
                "x-goog-api-key": api_key,
            }
        )

    def _post(self, method: str, prompt: str) -> Dict[str, Any]:
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        r = self._session.post(
            f"{self._model_url}:{method}", json=payload, timeout=REQUEST_TIMEOUT
        )
        r.raise_for_status()
        return r.json()

    def count_tokens(self, prompt: str) -> int:
        return int(self._post("countTokens", prompt).get("totalTokens", 0))

    def generate_content(self, prompt: str) -> str:
        """
        Sends a prompt to Gemini after checking it against the token budget.

        Args:
            prompt: The full prompt text.

        Returns:
            The text of the first candidate.

        Raises:
            GeminiError: If the prompt exceeds the budget, Gemini rejects it as
                too large, the rate limit is hit, or no candidate is returned.
            requests.HTTPError: For any other HTTP failure.
        """
        token_count = self.count_tokens(prompt)
        print(f"Prompt size: {token_count:,} tokens", file=sys.stderr)

        if token_count > self.max_input_tokens:
            raise GeminiError(
                f"Prompt too large: {token_count:,} tokens exceeds the "
                f"{self.max_input_tokens:,} token budget. Reduce input size."
            )

        if token_count > self.max_input_tokens * WARNING_RATIO:
            print(
                f"::warning::Prompt is {token_count:,} tokens, approaching the "
                f"{self.max_input_tokens:,} token limit."
            )

        try:
            data = self._post("generateContent", prompt)
        except HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            detail = e.response.text if e.response is not None else str(e)
            if status == 400 and "token" in detail.lower():
                raise GeminiError(
                    f"Gemini rejected the request (prompt too large: {token_count:,} tokens). "
                    f"Original error: {detail}"
                ) from e
            if status == 429:
                raise GeminiError(
                    f"Gemini rate limit exceeded. Retry later. Original error: {detail}"
                ) from e
            raise

        return self._extract_text(data)

    def _extract_text(self, data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            reason = data.get("promptFeedback", {}).get("blockReason", "unknown")
            raise GeminiError(f"Gemini returned no candidates (block reason: {reason})")

        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)
