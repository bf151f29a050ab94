import logging
from typing import Any, Dict, List, Protocol

from .errors import GitHubAPIError, CommentPostError
from .generation import CommentGenerator
from .models import CommentAction, PullRequestContext

logger = logging.getLogger(__name__)


class CommentPoster(Protocol):
    async def post(self, action: CommentAction, installation_id: int | None = None) -> dict: ...


def conflict_warning(context: PullRequestContext) -> CommentAction | None:
    """Warning addressed to the author when the host reports merge conflicts, otherwise None"""
    if not context.has_conflicts:
        return None
    return CommentAction(
        owner=context.owner,
        repo=context.repo,
        issue_number=context.number,
        body=(
            f"Hey @{context.author}, this pull request currently has **merge conflicts**.  \n"
            "Please resolve them before merging."
        ),
        kind="conflict_warning",
    )


def generated_comment(context: PullRequestContext, body: str) -> CommentAction:
    return CommentAction(
        owner=context.owner,
        repo=context.repo,
        issue_number=context.number,
        body=body,
        kind="generated",
    )


class PullRequestOpenedHandler:
    """
    Handles pull_request.opened deliveries.

    Posts the conflict warning first (failures propagate to the delivery
    layer), then the generated or fallback comment (failures are logged and
    not retried). Holds no per-delivery state, so concurrent deliveries
    never share anything but the injected clients.
    """

    def __init__(self, generator: CommentGenerator, poster: CommentPoster) -> None:
        self.generator = generator
        self.poster = poster

    async def handle(self, payload: Dict[str, Any]) -> List[CommentAction]:
        context = PullRequestContext.from_payload(payload)
        logger.info(f"Received a pull request event for #{context.number} in {context.repo_full_name}")
        logger.debug(f"PR context captured: {context.model_dump()}")

        posted: List[CommentAction] = []

        warning = conflict_warning(context)
        if warning:
            await self.poster.post(warning, installation_id=context.installation_id)
            logger.info(f"Posted merge conflict warning to {context.repo_full_name}#{context.number}")
            posted.append(warning)

        body = await self.generator.get_comment(context)
        action = generated_comment(context, body)

        try:
            await self.poster.post(action, installation_id=context.installation_id)
        except GitHubAPIError as e:
            logger.error(f"Error! Status: {e.status}. Message: {e.message}")
            return posted
        except CommentPostError as e:
            logger.error(f"Failed to post comment to {context.repo_full_name}#{context.number}: {e}")
            return posted

        logger.info(f"Posted AI-generated comment to {context.repo_full_name}#{context.number}")
        posted.append(action)
        return posted
