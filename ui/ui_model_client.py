import json
import logging
import threading

import requests

from schemas import GenerateRequest


logger = logging.getLogger(__name__)


class ModelServiceError(RuntimeError):
    pass


def _error_detail(response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
    return (response.text or "").strip() or (response.reason or "Bad request")


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        connect_timeout_s: float = 10.0,
        read_timeout_s: float | None = 300.0,
    ):
        self.api_key = (api_key or "").strip()
        self.model = model
        self.base_url = (base_url or "").rstrip("/")
        self.connect_timeout_s = connect_timeout_s
        self.read_timeout_s = read_timeout_s
        self._active_response = None
        self._active_lock = threading.Lock()

    @property
    def stream_url(self) -> str:
        return f"{self.base_url}/models/{self.model}:streamGenerateContent?alt=sse"

    def close(self) -> None:
        """Abort the response currently being streamed, if any."""
        with self._active_lock:
            response = self._active_response
        if response is not None:
            try:
                response.close()
            except (OSError, requests.RequestException):
                logger.debug("Closing stream raised", exc_info=True)

    def stream_generate(self, request: GenerateRequest):
        """
        Yield decoded JSON chunks from the server-sent event stream.

        Raises ModelServiceError for configuration problems, HTTP errors and
        error payloads; transport errors from requests propagate as-is.
        """
        if not self.api_key:
            raise ModelServiceError("GEMINI_API_KEY is not set.")

        response = requests.post(
            self.stream_url,
            json=request.to_payload(),
            headers={"x-goog-api-key": self.api_key},
            stream=True,
            timeout=(self.connect_timeout_s, self.read_timeout_s),
        )
        with self._active_lock:
            self._active_response = response
        try:
            response.encoding = "utf-8"
            if not response.ok:
                raise ModelServiceError(f"{response.status_code}: {_error_detail(response)}")

            for raw_line in response.iter_lines(decode_unicode=False):
                if not raw_line:
                    continue
                line = raw_line.decode("utf-8", errors="replace").strip()
                if not line.startswith("data:"):
                    continue
                data = line[len("data:"):].strip()
                if not data or data == "[DONE]":
                    continue
                try:
                    chunk = json.loads(data)
                except json.JSONDecodeError as exc:
                    raise ModelServiceError(f"Malformed response chunk: {exc}") from exc
                if isinstance(chunk, dict) and chunk.get("error"):
                    err = chunk["error"]
                    message = err.get("message") if isinstance(err, dict) else str(err)
                    raise ModelServiceError(message or "Upstream error")
                yield chunk
        finally:
            with self._active_lock:
                if self._active_response is response:
                    self._active_response = None
            response.close()
