"""
Insight requester for generating analysis text with OpenAI.

This module sends a prompt and a fixed system role to the OpenAI chat
completions endpoint and returns the generated text verbatim. Sampling
parameters come from configuration. There is no retry: a failed call fails
the analysis request.
"""

import json
import logging
from typing import Optional

import requests
from requests.exceptions import RequestException, Timeout, ConnectionError

from pulse.config import Settings
from pulse.errors import GenerationUnavailableError

# Configure module logger
logger = logging.getLogger(__name__)

PLACEHOLDER_ANALYSIS = "Analysis unavailable"


class InsightRequester:
    """Client for the text-generation API."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def request_analysis(self, prompt: str, system_prompt: str) -> str:
        """
        Generate analysis text for a prompt.

        Args:
            prompt: User prompt
            system_prompt: Fixed system role

        Returns:
            Content of the first completion, or PLACEHOLDER_ANALYSIS when the
            API returns no content

        Raises:
            GenerationUnavailableError: If the key is missing or the call fails
        """
        content = self._call_openai_api(prompt, system_prompt)

        if not content:
            logger.warning("OpenAI returned no content, using placeholder analysis")
            return PLACEHOLDER_ANALYSIS

        return content

    def _call_openai_api(self, prompt: str, system_prompt: str) -> Optional[str]:
        """
        Call the OpenAI chat completions API.

        Returns:
            Message content of the first choice, or None if the response has none
        """
        if not self.settings.openai_api_key:
            raise GenerationUnavailableError("OPENAI_API_KEY is not configured")

        headers = {
            "Authorization": f"Bearer {self.settings.openai_api_key}",
            "Content-Type": "application/json",
        }

        payload = {
            "model": self.settings.openai_model,
            "messages": [
                {
                    "role": "system",
                    "content": system_prompt
                },
                {
                    "role": "user",
                    "content": prompt
                }
            ],
            "temperature": self.settings.openai_temperature,
            "max_tokens": self.settings.openai_max_tokens,
        }

        try:
            logger.debug(f"Calling OpenAI API with model {self.settings.openai_model}")

            response = self.session.post(
                self.settings.openai_api_url,
                json=payload,
                headers=headers,
                timeout=self.settings.api_timeout,
            )

            response.raise_for_status()

            data = response.json()

        except Timeout as e:
            logger.error(f"OpenAI API request timed out after {self.settings.api_timeout}s")
            raise GenerationUnavailableError(f"OpenAI request timed out: {e}") from e

        except ConnectionError as e:
            logger.error(f"Connection error calling OpenAI API: {e}")
            raise GenerationUnavailableError(f"Could not reach OpenAI: {e}") from e

        except RequestException as e:
            logger.error(f"OpenAI API request failed: {e}")
            status = None
            if getattr(e, "response", None) is not None:
                status = e.response.status_code
                logger.error(f"Response status: {status}")
                logger.error(f"Response text: {e.response.text[:500]}")
            status_text = f" (HTTP {status})" if status else ""
            raise GenerationUnavailableError(f"OpenAI request failed{status_text}: {e}") from e

        except ValueError as e:
            logger.error(f"OpenAI API returned invalid JSON: {e}")
            raise GenerationUnavailableError(f"OpenAI returned invalid JSON: {e}") from e

        return _extract_content(data)


def _extract_content(data: object) -> Optional[str]:
    """Pull the first choice's message content out of a completion response."""
    if not isinstance(data, dict):
        logger.warning("Unexpected OpenAI API response structure")
        return None

    choices = data.get("choices")
    if isinstance(choices, list) and len(choices) > 0 and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None

        if isinstance(content, str) and content:
            logger.debug(f"Received response of length {len(content)}")
            return content

    logger.warning("OpenAI response contained no message content")
    logger.debug(f"Response data: {json.dumps(data, indent=2)[:500]}")
    return None
