"""Model runner backed by an OpenAI-compatible chat endpoint or the Ollama CLI."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..config import LLMConfig
from ..errors import ModelError
from ..logging import get_logger

_AUTO = object()


@dataclass
class LLMRequest:
    """Everything a transport needs to perform one completion."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    executable: Optional[str]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]
    json_output: bool = True


Transport = Callable[[LLMRequest], str]


class LLMRunner:
    """Sends generation prompts to the configured model and returns raw text.

    The runner prefers HTTP when a base URL is known (explicitly, through the
    environment, or the Docker Model Runner default) and shells out to the
    Ollama CLI when `base_url=None` is passed. A custom `runner` callable
    replaces both transports.
    """

    DEFAULT_MODEL = "ai/smollm2:360M-Q4_K_M"
    DEFAULT_BASE_URL = "http://localhost:12434/engines/v1"
    DEFAULT_TIMEOUT = 60.0
    ENV_MODEL_KEYS = ("TESTGEN_LLM_MODEL", "MODEL_RUNNER_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("TESTGEN_LLM_BASE_URL", "MODEL_RUNNER_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("TESTGEN_LLM_API_KEY", "MODEL_RUNNER_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None | object = _AUTO,
        executable: str = "ollama",
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = None,
        api_key: str | None | object = _AUTO,
        request_timeout: Optional[float] = DEFAULT_TIMEOUT,
        json_output: bool = True,
        runner: Transport | None = None,
    ) -> None:
        self.model = model or _first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL
        if base_url is _AUTO:
            base_url = _first_env_value(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URL
        self.base_url = str(base_url).rstrip("/") if base_url else None
        self.api_key = _first_env_value(self.ENV_API_KEY_KEYS) if api_key is _AUTO else api_key
        self.executable = executable
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout
        self.json_output = json_output
        self.logger = get_logger("llm")
        if runner is not None:
            self._runner: Transport = runner
        else:
            self._runner = http_transport if self.base_url else ollama_transport

    @classmethod
    def from_config(cls, llm_cfg: LLMConfig | None) -> "LLMRunner":
        """Build a runner from the `llm` section of .testgen.yml."""
        llm_cfg = llm_cfg or LLMConfig()
        kwargs: Dict[str, Any] = {}
        if llm_cfg.runner and llm_cfg.runner.lower() == "ollama":
            kwargs["executable"] = llm_cfg.runner
            kwargs["base_url"] = llm_cfg.base_url
        elif llm_cfg.base_url is not None:
            kwargs["base_url"] = llm_cfg.base_url
        optional = {
            "model": llm_cfg.model,
            "temperature": llm_cfg.temperature,
            "max_tokens": llm_cfg.max_tokens,
            "api_key": llm_cfg.api_key,
            "request_timeout": llm_cfg.request_timeout,
        }
        kwargs.update({key: value for key, value in optional.items() if value is not None})
        return cls(**kwargs)

    @classmethod
    def environment_available(cls) -> bool:
        """Return True when any runner environment override is set."""
        return _first_env_value((*cls.ENV_MODEL_KEYS, *cls.ENV_BASE_URL_KEYS, *cls.ENV_API_KEY_KEYS)) is not None

    @property
    def transport(self) -> Transport:
        return self._runner

    def run(self, prompt: str, *, system: str | None = None) -> str:
        """Send the prompt to the configured model and return the response text."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            executable=self.executable,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
            json_output=self.json_output,
        )
        self.logger.debug("Requesting completion from %s (%d prompt chars)", self.model, len(prompt))
        return self._runner(request)


def chat_payload(request: LLMRequest) -> Dict[str, Any]:
    """Body for an OpenAI-compatible `/chat/completions` call."""
    messages: List[Dict[str, str]] = []
    if request.system:
        messages.append({"role": "system", "content": request.system})
    messages.append({"role": "user", "content": request.prompt})

    payload: Dict[str, Any] = {"model": request.model, "messages": messages}
    if request.temperature is not None:
        payload["temperature"] = request.temperature
    if request.max_tokens is not None:
        payload["max_tokens"] = request.max_tokens
    if request.json_output:
        payload["response_format"] = {"type": "json_object"}
    return payload


def http_transport(request: LLMRequest) -> str:
    if not request.base_url:
        raise ModelError("HTTP runner requires a base_url to be configured.")

    headers = {"Content-Type": "application/json"}
    if request.api_key:
        headers["Authorization"] = f"Bearer {request.api_key}"
    http_request = Request(
        f"{request.base_url}/chat/completions",
        data=json.dumps(chat_payload(request)).encode("utf-8"),
        headers=headers,
        method="POST",
    )
    timeout = request.request_timeout or LLMRunner.DEFAULT_TIMEOUT

    try:
        with urlopen(http_request, timeout=timeout) as response:
            raw = response.read()
    except HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore").strip() if exc.fp is not None else ""
        raise ModelError(
            f"LLM HTTP runner failed with status {exc.code}: {detail or exc.reason}",
            status_code=exc.code,
        ) from exc
    except URLError as exc:
        raise ModelError(f"LLM HTTP runner failed: {exc.reason}") from exc
    except TimeoutError as exc:
        raise ModelError(f"LLM HTTP runner timed out after {timeout} seconds") from exc

    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ModelError("LLM HTTP runner returned invalid JSON") from exc

    content = completion_text(payload)
    if not content.strip():
        raise ModelError("LLM HTTP runner returned an empty response")
    return content.strip()


def completion_text(payload: Any) -> str:
    """Pull the first choice's text out of a chat or legacy completion body."""
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    first = choices[0]
    message = first.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    text = first.get("text")
    return text if isinstance(text, str) else ""


def ollama_transport(request: LLMRequest) -> str:
    executable = request.executable or "ollama"
    args = [executable, "run", request.model]
    if request.json_output:
        args.extend(["--format", "json"])
    # The CLI has no system-message flag; the system text leads the prompt instead.
    prompt = f"{request.system}\n\n{request.prompt}" if request.system else request.prompt
    args.append(prompt)
    try:
        completed = subprocess.run(
            args,
            check=True,
            capture_output=True,
            text=True,
            timeout=request.request_timeout,
        )
    except FileNotFoundError as exc:
        raise ModelError(
            f"Unable to locate '{executable}'. Install Ollama or configure a base_url."
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise ModelError(f"LLM runner timed out after {exc.timeout} seconds") from exc
    except subprocess.CalledProcessError as exc:
        raise ModelError(
            f"LLM runner failed with exit code {exc.returncode}: {(exc.stderr or '').strip()}"
        ) from exc
    return completed.stdout.strip()


def _first_env_value(keys: Sequence[str]) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


__all__ = [
    "LLMRequest",
    "LLMRunner",
    "Transport",
    "chat_payload",
    "completion_text",
    "http_transport",
    "ollama_transport",
]
