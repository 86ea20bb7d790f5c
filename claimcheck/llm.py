"""
Groq API wrapper — the only file that calls Groq.
"""

import logging
from typing import Optional

from claimcheck.collaborators import BaseInferenceClient
from claimcheck.config import Settings, get_settings
from claimcheck.errors import FatalTransportError

logger = logging.getLogger(__name__)


class GroqClient(BaseInferenceClient):
    def __init__(self, settings: Optional[Settings] = None) -> None:
        try:
            import groq
        except ImportError:
            raise ImportError("groq library not installed. Run: pip install groq")

        settings = settings or get_settings()
        api_key = settings.require_groq_key()

        self.model = settings.GROQ_MODEL
        self._errors = groq.APIError
        # Retries belong to the transport layer; a failed call here is final.
        self._client = groq.Groq(
            api_key=api_key,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            max_retries=0,
        )

    def generate(
        self,
        system_instruction: str,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> str:
        """Call Groq once and return the raw text. Raises FatalTransportError on any API failure."""
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
                stream=False,
            )
        except self._errors as exc:
            logger.error("Groq call failed (%s): %s", type(exc).__name__, exc)
            raise FatalTransportError("inference", str(exc)) from exc

        if not response.choices:
            raise FatalTransportError("inference", "response contained no choices")
        content = response.choices[0].message.content or ""
        return content.strip()
