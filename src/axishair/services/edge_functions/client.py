"""Supabase edge function client for starting AI generation jobs."""

from uuid import UUID

import httpx
import structlog

from axishair.models.generation_job import GenerationKind
from axishair.services.exceptions import TriggerError

logger = structlog.get_logger(__name__)


class EdgeFunctionClient:
    """Trigger endpoint for the generate-recommendation / generate-preview-image functions.

    A successful invoke() means the function accepted the job. Results are
    written to the consultation row by the function itself.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize edge function client.

        Args:
            base_url: Supabase project URL (e.g., https://abc.supabase.co)
            service_key: Key sent as bearer token and apikey header
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
            "Content-Type": "application/json",
        }

    def function_url(self, kind: GenerationKind) -> str:
        return f"{self.base_url}/functions/v1/{kind.function_name}"

    async def invoke(self, kind: GenerationKind, subject_id: UUID) -> None:
        """Ask the edge function to generate a result for a consultation.

        Args:
            kind: Which generation to start
            subject_id: Consultation ID

        Raises:
            TriggerError: Network failure, non-2xx response, or {"error": ...} body
        """
        url = self.function_url(kind)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    url,
                    headers=self.headers,
                    json={"consultation_id": str(subject_id)},
                )
        except httpx.TimeoutException as e:
            raise TriggerError(f"Request timeout after {self.timeout:g}s: {str(e)}")
        except httpx.HTTPError as e:
            raise TriggerError(f"Network error: {str(e)}")

        # Error classification
        if response.status_code in (401, 403):
            raise TriggerError(
                f"Unauthorized ({response.status_code}): check SUPABASE_SERVICE_ROLE_KEY",
                status_code=response.status_code,
            )
        if response.status_code == 404:
            raise TriggerError(
                f"Edge function {kind.function_name} is not deployed",
                status_code=response.status_code,
            )

        error = _extract_error(response)
        if response.is_error or error:
            raise TriggerError(
                f"{kind.function_name} failed ({response.status_code}): "
                f"{error or response.text or 'no details'}",
                status_code=response.status_code,
            )

        logger.debug(
            "edge_function.accepted",
            function=kind.function_name,
            subject_id=str(subject_id),
            status_code=response.status_code,
        )


def _extract_error(response: httpx.Response) -> str | None:
    """Pull the "error" field out of a JSON body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None
