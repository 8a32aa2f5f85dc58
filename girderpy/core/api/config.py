"""
API configuration module.

Provides configuration for the Girder API client: base URL, token,
timeouts, SSL and the download retry policy.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import os
import ssl


TOKEN_HEADER = 'Girder-Token'


@dataclass
class SSLConfig:
    """
    SSL/TLS configuration.

    Allows customization of SSL behavior for self-hosted Girder servers.
    """
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self):
        """Create SSL context from configuration (False disables verification)."""
        if not self.verify:
            return False

        context = ssl.create_default_context()

        if self.ca_file:
            context.load_verify_locations(self.ca_file)

        if self.cert_file:
            context.load_cert_chain(
                self.cert_file,
                keyfile=self.key_file
            )

        context.check_hostname = self.check_hostname

        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    Granular control over different timeout types.
    """
    total: float = 120.0  # Total request timeout
    connect: float = 30.0  # Connection timeout
    sock_read: float = 60.0  # Socket read timeout
    sock_connect: float = 30.0  # Socket connect timeout

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class RetryConfig:
    """
    Retry configuration.

    Only file downloads are retried; Girder answers 400 while a file is
    still being prepared for download.
    """
    download_retries: int = 5
    retry_on_status: tuple = (400,)
    base_delay: float = 0.5
    max_redirects: int = 1

    def should_retry(self, status: int, retry_count: int) -> bool:
        """Check if a download should be retried."""
        return status in self.retry_on_status and retry_count < self.download_retries


@dataclass
class APIConfig:
    """
    Complete API configuration.

    Centralizes all configuration options for the Girder API client.
    The token may be empty and set later, once authentication succeeds.
    """
    api_url: str = 'http://localhost:8080/api/v1'
    token: Optional[str] = None

    user_agent: str = 'girderpy/1.0.0'

    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    extra_headers: Dict[str, str] = field(default_factory=dict)

    log_level: int = 20  # logging.INFO

    # Connection pool settings
    limit_per_host: int = 10
    limit: int = 100

    def __post_init__(self):
        self.api_url = self.api_url.rstrip('/')

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def from_env(cls, **kwargs) -> 'APIConfig':
        """Create configuration from GIRDER_API_URL and GIRDER_TOKEN."""
        api_url = os.environ.get('GIRDER_API_URL')
        if api_url:
            kwargs.setdefault('api_url', api_url)
        token = os.environ.get('GIRDER_TOKEN')
        if token:
            kwargs.setdefault('token', token)
        return cls(**kwargs)

    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Create configuration with SSL verification disabled."""
        return cls(
            ssl=SSLConfig(verify=False, check_hostname=False),
            **kwargs
        )

    def url(self, path: str) -> str:
        """Join an endpoint path onto the API URL."""
        return f"{self.api_url}/{path.lstrip('/')}"

    def auth_headers(self) -> Dict[str, str]:
        """Headers authenticating a request, empty before authentication."""
        if not self.token:
            return {}
        return {TOKEN_HEADER: self.token}

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            'Accept': 'application/json',
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
