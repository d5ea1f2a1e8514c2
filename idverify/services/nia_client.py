"""
Client for the external national ID verification service.

One synchronous-from-the-caller HTTPS POST per submission; no retries.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class NIAUnavailableError(Exception):
    """The verification service could not be reached or did not answer in time."""
    pass


@dataclass(frozen=True)
class NIAResponse:
    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Optional[Any]:
        """Parsed body, or None if the body is not JSON."""
        try:
            return json.loads(self.text)
        except ValueError:
            return None


class NIAClient:
    def __init__(
        self,
        url: str,
        merchant_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.merchant_key = merchant_key
        self.timeout = timeout
        self.transport = transport

    async def verify(self, pin_number: str, image_base64: str) -> NIAResponse:
        """Send a PIN and a base64 selfie for verification.

        Raises:
            NIAUnavailableError: On connection errors and timeouts.
        """
        payload = {
            "merchantKey": self.merchant_key,
            "pinNumber": pin_number,
            "image": image_base64,
        }
        logger.info(f"Sending verification request for PIN {pin_number[:4]}***")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
        except httpx.TimeoutException as e:
            raise NIAUnavailableError(f"Verification service timed out: {str(e)}") from e
        except httpx.HTTPError as e:
            raise NIAUnavailableError(f"Verification service unreachable: {str(e)}") from e

        logger.info(f"Verification service answered {response.status_code}")
        return NIAResponse(status_code=response.status_code, text=response.text)
