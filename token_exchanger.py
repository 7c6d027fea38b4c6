from typing import Optional

import httpx

from config import settings
from errors import NetworkUnavailable, TokenExchangeFailed

class TokenExchanger:
    def __init__(self, api_base: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.api_base = api_base or settings.API_BASE
        self.timeout = timeout or settings.API_TIMEOUT
        self.transport = transport

    def exchange(self, license_key: str) -> str:
        """
        Trade a validated license key for a repository access token.

        There is no offline fallback: a token cannot be produced locally.
        """
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    f"{self.api_base}/installer/github-token",
                    json={"api_key": license_key},
                    headers={"Content-Type": "application/json"}
                )

                if response.status_code != 200:
                    raise TokenExchangeFailed(
                        f"Failed to obtain repository access token (status: {response.status_code})"
                    )

                token = response.json().get("github_token")

        except (httpx.ConnectError, httpx.TimeoutException) as e:
            raise NetworkUnavailable(f"Cannot reach license server - check internet connection: {e}") from e
        except httpx.HTTPError as e:
            raise TokenExchangeFailed(f"Failed to contact license server: {e}") from e
        except (ValueError, AttributeError) as e:
            raise TokenExchangeFailed(f"Unreadable token response: {e}") from e

        if not token or not isinstance(token, str):
            raise TokenExchangeFailed("License server response did not contain an access token")

        return token
