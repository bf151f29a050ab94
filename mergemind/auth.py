import jwt
import time
import logging
import aiohttp
from datetime import datetime, timedelta

from .errors import ConfigurationError

log = logging.getLogger(__name__)

USER_AGENT = "MergeMind-Bot"


class GitHubAppAuth:
    def __init__(
        self,
        app_id: str,
        private_key: str,
        api_base_url: str = "https://api.github.com",
        installation_id: int | None = None,
    ) -> None:
        self.app_id = app_id
        self.private_key = private_key
        self.api_base_url = api_base_url.rstrip("/")
        self.installation_id = installation_id

        # installation id -> (token, expires_at)
        self._tokens: dict[int, tuple[str, datetime]] = {}

    @classmethod
    def from_key_file(
        cls,
        app_id: str,
        private_key_path: str,
        api_base_url: str = "https://api.github.com",
        installation_id: int | None = None,
    ) -> "GitHubAppAuth":
        try:
            with open(private_key_path, 'r') as f:
                private_key = f.read()
        except FileNotFoundError:
            raise ConfigurationError(f"GitHub App private key not found: {private_key_path}")
        return cls(app_id, private_key, api_base_url, installation_id)

    def _generate_jwt(self) -> str:
        """Generate JWT to authenticate as the GitHub App"""
        payload = {
            'iat': int(time.time()),
            'exp': int(time.time()) + 600,  # JWT expires in 10 minutes
            'iss': self.app_id
        }
        return jwt.encode(payload, self.private_key, algorithm='RS256')

    def _app_headers(self) -> dict[str, str]:
        return {
            'Authorization': f'Bearer {self._generate_jwt()}',
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': USER_AGENT
        }

    async def get_app(self) -> dict:
        """Fetch the authenticated app (GET /app)"""
        async with aiohttp.ClientSession() as session:
            async with session.get(f'{self.api_base_url}/app', headers=self._app_headers()) as response:
                response.raise_for_status()
                return await response.json()

    async def get_installation_token(self, installation_id: int | None = None) -> str:
        """Get installation access token (cached per installation)"""
        installation_id = installation_id or self.installation_id
        if not installation_id:
            raise ConfigurationError("No installation id in the delivery and GITHUB_INSTALLATION_ID is not set")

        cached = self._tokens.get(installation_id)
        if cached and datetime.now() < cached[1]:
            return cached[0]

        url = f'{self.api_base_url}/app/installations/{installation_id}/access_tokens'

        async with aiohttp.ClientSession() as session:
            async with session.post(url, headers=self._app_headers()) as response:
                response.raise_for_status()
                data = await response.json()

        token = data['token']
        # Tokens expire in 1 hour, refresh 5 min early
        self._tokens[installation_id] = (token, datetime.now() + timedelta(minutes=55))
        log.info(f"GitHub App installation token refreshed for installation {installation_id}")
        return token
