"""Remote service client: planning call plus the /videos job endpoints."""

import json
import logging

import httpx
from openai import APIConnectionError, APIStatusError, OpenAI

from reelchain.clients.parser import extract_segment_descriptors
from reelchain.config import Settings, get_settings
from reelchain.models.brief import ReferenceImage, Resolution
from reelchain.models.errors import MalformedResponse, ServiceError, ValidationError
from reelchain.models.job import GenerationJob

logger = logging.getLogger(__name__)


class RemoteServiceClient:
    """Maps the four remote operations onto requests.

    Holds nothing but credentials and transports, so one instance can be
    shared by concurrent runs. No operation retries.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        llm_client: OpenAI | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.settings = settings or get_settings()
        self._llm = llm_client
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(
            base_url=self.settings.api_base,
            timeout=httpx.Timeout(self.settings.request_timeout_seconds),
        )

    @property
    def llm(self) -> OpenAI:
        if self._llm is None:
            if not self.settings.openai_api_key:
                raise ValidationError(
                    "No API key configured (set REELCHAIN_OPENAI_API_KEY)",
                    details={"setting": "openai_api_key"},
                )
            self._llm = OpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.api_base,
                timeout=self.settings.request_timeout_seconds,
            )
        return self._llm

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.settings.openai_api_key}"}

    # Planning

    def request_plan(self, model: str, system_prompt: str, user_prompt: str) -> list[dict]:
        """Send one planning request and return the raw segment descriptors."""
        try:
            response = self.llm.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={"type": "json_object"},
            )
        except APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            raise ServiceError(
                f"Plan prompts failed: HTTP {e.status_code}\n{body}",
                status_code=e.status_code,
                body=body,
                operation="plan",
            ) from e
        except APIConnectionError as e:
            raise ServiceError(
                f"Plan prompts failed: {e}", body=str(e), operation="plan"
            ) from e

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""
        return extract_segment_descriptors(text)

    # Video jobs

    def submit(
        self,
        prompt: str,
        size: Resolution | str | None,
        seconds: int,
        model: str,
        reference: ReferenceImage | None = None,
    ) -> GenerationJob:
        """Create a generation job. Always sent as multipart/form-data."""
        files: dict[str, tuple] = {
            "model": (None, model),
            "prompt": (None, prompt),
            "seconds": (None, str(int(seconds))),
        }
        if size:
            files["size"] = (None, str(size))
        if reference is not None:
            files["input_reference"] = (reference.filename, reference.data, reference.content_type)

        response = self._send("POST", "/videos", operation="create", files=files)
        job = GenerationJob.from_payload(self._json(response, "create"))
        logger.info(f"Created job {job.id} ({job.status.value}), reference={reference is not None}")
        return job

    def poll(self, job_id: str) -> GenerationJob:
        """Fetch the current status of a job once."""
        response = self._send("GET", f"/videos/{job_id}", operation="retrieve")
        return GenerationJob.from_payload(self._json(response, "retrieve"))

    def fetch(self, job_id: str, variant: str = "video") -> bytes:
        """Download the finished artifact of a completed job."""
        response = self._send(
            "GET",
            f"/videos/{job_id}/content",
            operation="download",
            params={"variant": variant},
            timeout=self.settings.download_timeout_seconds,
        )
        return response.content

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "RemoteServiceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _send(self, method: str, path: str, operation: str, **kwargs) -> httpx.Response:
        labels = {"create": "Create video", "retrieve": "Retrieve video", "download": "Download"}
        label = labels.get(operation, operation)
        try:
            response = self._http.request(method, path, headers=self._headers, **kwargs)
        except httpx.TransportError as e:
            raise ServiceError(f"{label} failed: {e}", body=str(e), operation=operation) from e

        if not response.is_success:
            body = response.text
            raise ServiceError(
                f"{label} failed: HTTP {response.status_code}\n{body}",
                status_code=response.status_code,
                body=body,
                operation=operation,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response, operation: str) -> object:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedResponse(
                f"Invalid JSON in {operation} response: {e}",
                details={"response_preview": response.text[:200]},
            ) from e
