# 📄 File: app/shared/infrastructure/external_apis/api_client.py

# 🧭 Purpose (Layman Explanation):
# This file creates a smart HTTP client that knows how to talk to external services reliably,
# handling timeouts, retries, and errors gracefully when communicating with plant identification,
# plant catalog or AI text services.

# 🧪 Purpose (Technical Summary):
# Generic async HTTP client with retry on transport errors, status-code to exception mapping,
# JSON response parsing and request statistics for all external provider integrations.

# 🔗 Dependencies:
# - aiohttp: Async HTTP client
# - tenacity: Retry logic and backoff strategies

# 🔄 Connected Modules / Calls From:
# Used by: Plant.id, Gemini, Perenual and Trefle provider adapters

import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urljoin

import aiohttp
from aiohttp import ClientSession, ClientTimeout
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.shared.core.exceptions import (
    MalformedProviderResponseError,
    ProviderQuotaExceededError,
    ProviderUnavailableError,
)
from app.shared.utils.logging import get_logger

logger = get_logger(__name__)

# tenacity's before_sleep_log needs a plain stdlib logger
_retry_logger = logging.getLogger(__name__)


class APIClient:
    """
    Generic async HTTP client for external provider integrations.

    Features:
    - Automatic retry with exponential backoff on transport errors
    - Status code mapping to provider exceptions
    - JSON parsing with malformed-body detection
    - Request/response logging
    - Performance statistics
    """

    def __init__(
        self,
        base_url: str,
        api_name: str,
        api_key: Optional[str] = None,
        auth_header: Optional[str] = None,
        auth_param: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
    ):
        """
        Args:
            base_url: Provider base URL
            api_name: Provider name used in logs and exceptions
            api_key: Provider credential
            auth_header: Header the key is sent in (e.g. Api-Key)
            auth_param: Query parameter the key is sent in (e.g. key, token)
            timeout: Total request timeout in seconds
            max_retries: Attempts for transport-level failures
        """
        self.base_url = base_url.rstrip('/') + '/'
        self.api_name = api_name
        self.api_key = api_key
        self.auth_header = auth_header
        self.auth_param = auth_param
        self.timeout = timeout
        self.max_retries = max_retries

        self.session: Optional[ClientSession] = None

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'average_response_time': 0,
            'last_request_time': None,
        }

        self.error_history: List[Dict[str, Any]] = []
        self.max_error_history = 100

    async def initialize(self):
        """Initialize the client session."""
        if self.session is not None:
            return

        timeout = ClientTimeout(total=self.timeout)
        connector = aiohttp.TCPConnector(
            limit=10,
            limit_per_host=5,
            ttl_dns_cache=300,
        )
        self.session = ClientSession(
            timeout=timeout,
            connector=connector,
            headers=self._get_default_headers()
        )
        logger.info(f"API client initialized for {self.api_name}")

    def _get_default_headers(self) -> Dict[str, str]:
        """Get default headers for requests."""
        headers = {
            'User-Agent': f'PlantDiagnosis/1.0 ({self.api_name}-client)',
            'Accept': 'application/json',
        }
        if self.api_key and self.auth_header:
            headers[self.auth_header] = self.api_key
        return headers

    def _auth_params(self) -> Dict[str, str]:
        if self.api_key and self.auth_param:
            return {self.auth_param: self.api_key}
        return {}

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        data: Optional[Union[Dict, str, bytes]] = None,
        headers: Optional[Dict] = None,
    ) -> Dict[str, Any]:
        """
        Make an HTTP request and return the parsed JSON body.

        Raises:
            ProviderQuotaExceededError: Provider answered 429 or 402
            ProviderUnavailableError: Transport failure or other non-2xx status
            MalformedProviderResponseError: Body is not a JSON object
        """
        url = urljoin(self.base_url, endpoint.lstrip('/'))
        try:
            return await self._make_request(method, url, params, data, headers)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.stats['failed_requests'] += 1
            self._record_error(e, method, url)
            raise ProviderUnavailableError(
                f"{self.api_name} request failed: {type(e).__name__}",
                provider=self.api_name
            ) from e

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[Dict],
        data: Optional[Union[Dict, str, bytes]],
        headers: Optional[Dict],
    ) -> Dict[str, Any]:
        """Make HTTP request with retry logic."""
        retrying = retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((aiohttp.ClientConnectionError, asyncio.TimeoutError)),
            before_sleep=before_sleep_log(_retry_logger, logging.WARNING),
            reraise=True,
        )
        return await retrying(self._send)(method, url, params, data, headers)

    async def _send(
        self,
        method: str,
        url: str,
        params: Optional[Dict],
        data: Optional[Union[Dict, str, bytes]],
        headers: Optional[Dict],
    ) -> Dict[str, Any]:
        if not self.session:
            await self.initialize()

        request_kwargs: Dict[str, Any] = {
            'method': method,
            'url': url,
            'params': {**(params or {}), **self._auth_params()},
        }
        if headers:
            request_kwargs['headers'] = headers
        if data is not None:
            if isinstance(data, dict):
                request_kwargs['json'] = data
            else:
                request_kwargs['data'] = data

        start_time = time.time()

        async with self.session.request(**request_kwargs) as response:
            response_time = time.time() - start_time

            self.stats['total_requests'] += 1
            self.stats['last_request_time'] = datetime.now(timezone.utc).isoformat()
            if self.stats['average_response_time'] == 0:
                self.stats['average_response_time'] = response_time
            else:
                self.stats['average_response_time'] = (
                    self.stats['average_response_time'] * 0.7 + response_time * 0.3
                )

            await self._handle_response_status(response, method, url)

            text = await response.text()
            try:
                response_data = json.loads(text)
            except ValueError:
                self.stats['failed_requests'] += 1
                logger.error(
                    f"{self.api_name} returned a non-JSON body",
                    api_name=self.api_name,
                    body_preview=text[:500],
                )
                raise MalformedProviderResponseError(
                    f"{self.api_name} returned a non-JSON body",
                    provider=self.api_name,
                    raw_response=text[:2000]
                )

            if not isinstance(response_data, dict):
                self.stats['failed_requests'] += 1
                raise MalformedProviderResponseError(
                    f"{self.api_name} returned a non-object JSON body",
                    provider=self.api_name,
                    raw_response=text[:2000]
                )

            self.stats['successful_requests'] += 1
            logger.log_external_api_call(
                self.api_name, url, method, response.status, response_time * 1000, True
            )
            return response_data

    async def _handle_response_status(self, response: aiohttp.ClientResponse, method: str, url: str):
        """Handle HTTP response status codes."""
        if 200 <= response.status < 300:
            return

        self.stats['failed_requests'] += 1
        response_text = await response.text()
        logger.log_external_api_call(self.api_name, url, method, response.status, 0.0, False)
        logger.error(
            f"{self.api_name} error response ({response.status})",
            api_name=self.api_name,
            status_code=response.status,
            body_preview=response_text[:500],
        )

        if response.status in (402, 429):
            retry_after = response.headers.get('Retry-After')
            raise ProviderQuotaExceededError(
                f"Quota exceeded for {self.api_name}",
                provider=self.api_name,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
            )
        raise ProviderUnavailableError(
            f"{self.api_name} error ({response.status})",
            provider=self.api_name,
            upstream_status=response.status
        )

    def _record_error(self, error: Exception, method: str, url: str):
        """Record error for analysis and monitoring."""
        error_record = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'error_type': type(error).__name__,
            'error_message': str(error),
            'method': method,
            'url': url,
            'api_name': self.api_name
        }
        self.error_history.append(error_record)
        if len(self.error_history) > self.max_error_history:
            self.error_history = self.error_history[-self.max_error_history:]

        logger.error(f"API error recorded for {self.api_name}", **error_record)

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict] = None,
        headers: Optional[Dict] = None,
    ) -> Dict[str, Any]:
        """Make GET request."""
        return await self.request('GET', endpoint, params=params, headers=headers)

    async def post(
        self,
        endpoint: str,
        data: Optional[Union[Dict, str, bytes]] = None,
        params: Optional[Dict] = None,
        headers: Optional[Dict] = None,
    ) -> Dict[str, Any]:
        """Make POST request."""
        return await self.request('POST', endpoint, params=params, data=data, headers=headers)

    def get_stats(self) -> Dict[str, Any]:
        """Get client performance statistics."""
        return {
            **self.stats,
            'api_name': self.api_name,
            'error_rate': (
                self.stats['failed_requests'] / max(self.stats['total_requests'], 1)
            ) * 100,
        }

    def get_recent_errors(self, limit: int = 10) -> List[Dict]:
        """Get recent error history."""
        return self.error_history[-limit:]

    async def close(self):
        """Close the client session and cleanup resources."""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info(f"API client closed for {self.api_name}")
