import logging
import os

import ollama
import requests

from .config import AnalyzerConfig, SystemConfig, get_system_config

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class LlmWrapper:
    def __init__(
        self,
        model: str = "gemma3:27b",
        temperature: float = 0.2,
        host: str = None,
        timeout: float = 30.0,
    ):
        self.model = model
        self.temperature = temperature
        # Prefer an explicit host; fall back to env var; then a safe default.
        self.host = host or os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
        self.client = ollama.Client(host=self.host, timeout=timeout)

    def chat(self, messages: list[dict], json_mode: bool = False) -> str:
        """
        Send chat messages to Ollama and return the response content as a string.

        With ``json_mode`` the model is asked to emit a JSON object only.
        """
        try:
            response = self.client.chat(
                model=self.model,
                messages=messages,
                format="json" if json_mode else "",
                options={"temperature": self.temperature},
            )

            # ChatResponse object in current clients, plain dict in older ones
            if hasattr(response, "message"):
                return response.message.content
            elif isinstance(response, dict) and "message" in response:
                message = response["message"]
                if isinstance(message, dict):
                    return message.get("content", "")
                elif hasattr(message, "content"):
                    return message.content

            raise ValueError(
                f"Unable to extract content from response of type {type(response)}"
            )
        except Exception as e:
            raise RuntimeError(
                f"LLM chat failed (model: {self.model}, host: {self.host}): {str(e)}"
            ) from e


class AnthropicWrapper:
    """Messages API client with the same ``chat`` contract as LlmWrapper"""

    def __init__(
        self,
        model: str = "claude-sonnet-4-5",
        api_key: str = None,
        url: str = "https://api.anthropic.com/v1/messages",
        max_tokens: int = 1024,
        temperature: float = 0.2,
        timeout: float = 30.0,
        session: requests.Session = None,
    ):
        self.model = model
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY", "")
        self.url = url
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.session = session or requests.Session()

    def _error_message(self, response: requests.Response) -> str:
        try:
            detail = response.json().get("error", {}).get("message")
        except ValueError:
            detail = None
        return detail or f"API Error: {response.status_code}"

    def chat(self, messages: list[dict], json_mode: bool = False) -> str:
        system = "\n\n".join(m["content"] for m in messages if m.get("role") == "system")
        body = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [
                {"role": m["role"], "content": m["content"]}
                for m in messages
                if m.get("role") != "system"
            ],
        }
        if system:
            body["system"] = system

        try:
            response = self.session.post(
                self.url,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                    "content-type": "application/json",
                },
                json=body,
                timeout=self.timeout,
            )
            if response.status_code >= 400:
                raise RuntimeError(self._error_message(response))

            blocks = response.json().get("content") or []
            text = next(
                (b.get("text") for b in blocks if b.get("type") == "text" and b.get("text")),
                None,
            )
            if text is None:
                raise ValueError("Empty response from API")
            return text
        except Exception as e:
            raise RuntimeError(
                f"LLM chat failed (model: {self.model}, url: {self.url}): {str(e)}"
            ) from e


def get_llm(config: AnalyzerConfig, system: SystemConfig | None = None):
    """Build the chat client selected by ``config.llm_provider``"""
    system = system or get_system_config()
    if config.llm_provider == "anthropic":
        logger.info(f"Using Anthropic model {config.model}")
        return AnthropicWrapper(
            model=config.model,
            api_key=system.anthropic_api_key,
            url=system.anthropic_url,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout=config.timeout,
        )
    logger.info(f"Using Ollama model {config.model} at {system.ollama_host}")
    return LlmWrapper(
        model=config.model,
        temperature=config.temperature,
        host=system.ollama_host,
        timeout=config.timeout,
    )
