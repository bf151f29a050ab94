import asyncio
import logging

import aiohttp

from .auth import GitHubAppAuth, USER_AGENT
from .errors import ConfigurationError, GitHubAPIError, GitHubTransportError
from .models import CommentAction

log = logging.getLogger(__name__)


class GitHubClient:
    def __init__(self, auth: GitHubAppAuth, timeout: int = 30) -> None:
        self.auth = auth
        self.timeout = timeout

    async def create_issue_comment(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        body: str,
        installation_id: int | None = None,
    ) -> dict:
        """
        Create a comment on an issue or pull request. Single attempt.

        Raises:
            GitHubAPIError: GitHub answered with a non-201 status
            GitHubTransportError: no response was received, or no installation
                token could be obtained
        """
        url = f"{self.auth.api_base_url}/repos/{owner}/{repo}/issues/{issue_number}/comments"

        try:
            try:
                token = await self.auth.get_installation_token(installation_id)
            except (ConfigurationError, KeyError) as e:
                raise GitHubTransportError(f"Could not obtain an installation token: {e!r}") from e
            headers = {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": USER_AGENT
            }

            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.post(url, headers=headers, json={"body": body}) as resp:
                    if resp.status != 201:
                        raise GitHubAPIError(resp.status, await _error_message(resp))
                    return await resp.json()

        except aiohttp.ClientResponseError as e:
            # Raised by raise_for_status while fetching the installation token
            raise GitHubAPIError(e.status, e.message) from e
        except aiohttp.ClientError as e:
            raise GitHubTransportError(f"Request to {url} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise GitHubTransportError(f"Request to {url} timed out after {self.timeout}s") from e

    async def post(self, action: CommentAction, installation_id: int | None = None) -> dict:
        return await self.create_issue_comment(
            action.owner,
            action.repo,
            action.issue_number,
            action.body,
            installation_id=installation_id,
        )


async def _error_message(resp) -> str:
    """GitHub error bodies are JSON with a "message" field; fall back to raw text"""
    try:
        data = await resp.json(content_type=None)
    except ValueError:
        return await resp.text()
    if isinstance(data, dict) and data.get("message"):
        return data["message"]
    return str(data)
