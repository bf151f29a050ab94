from enum import Enum
from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import MalformedEventError


class MergeStatus(str, Enum):
    MERGEABLE = "mergeable"
    CONFLICTED = "conflicted"
    UNKNOWN = "unknown"


class PullRequestContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    repo_full_name: str
    number: int
    title: str = ""
    body: str = ""
    author: str = "unknown"
    mergeable: bool | None = None
    mergeable_state: str | None = None
    installation_id: int | None = None

    @property
    def merge_status(self) -> MergeStatus:
        if self.mergeable is False or self.mergeable_state == "dirty":
            return MergeStatus.CONFLICTED
        if self.mergeable is True:
            return MergeStatus.MERGEABLE
        return MergeStatus.UNKNOWN

    @property
    def merge_status_label(self) -> str:
        """Host reported mergeable_state when present, e.g. "clean" or "dirty" """
        return self.mergeable_state or self.merge_status.value

    @property
    def has_conflicts(self) -> bool:
        return self.merge_status is MergeStatus.CONFLICTED

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "PullRequestContext":
        """
        Build the context for a pull_request delivery.

        Raises:
            MalformedEventError: owner login, repository name or PR number is
                missing, or a field has the wrong shape
        """
        try:
            pr = payload.get("pull_request") or {}
            repository = payload.get("repository") or {}
            owner = (repository.get("owner") or {}).get("login")
            repo = repository.get("name")
            number = pr.get("number", payload.get("number"))
        except AttributeError as e:
            raise MalformedEventError(f"Payload has an unexpected shape: {e}") from e

        missing = [
            name
            for name, value in (
                ("repository.owner.login", owner),
                ("repository.name", repo),
                ("pull_request.number", number),
            )
            if value in (None, "")
        ]
        if missing:
            raise MalformedEventError(f"Payload missing required fields: {', '.join(missing)}")

        try:
            return cls(
                owner=owner,
                repo=repo,
                repo_full_name=repository.get("full_name") or f"{owner}/{repo}",
                number=number,
                title=pr.get("title") or "",
                body=pr.get("body") or "",
                author=(pr.get("user") or {}).get("login") or "unknown",
                mergeable=pr.get("mergeable"),
                mergeable_state=pr.get("mergeable_state"),
                installation_id=(payload.get("installation") or {}).get("id"),
            )
        except (ValidationError, AttributeError, TypeError) as e:
            raise MalformedEventError(f"Payload has invalid field values: {e}") from e


class CommentAction(BaseModel):
    """A single create-issue-comment call the handler intends to make"""

    owner: str
    repo: str
    issue_number: int
    body: str
    kind: Literal["conflict_warning", "generated"]
