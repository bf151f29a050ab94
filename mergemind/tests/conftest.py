import pytest

from mergemind.fallback import FallbackMessage

FALLBACK_TEXT = "Hi, I'm MergeMind assistant. I'll follow up in this thread shortly."


def make_pr_payload(
    number: int = 7,
    title: str = "Fix bug",
    body: str | None = "",
    author: str = "alice",
    mergeable: bool | None = True,
    mergeable_state: str | None = "clean",
    owner: str = "octo-org",
    repo: str = "widgets",
    installation_id: int | None = 4242,
) -> dict:
    payload = {
        "action": "opened",
        "number": number,
        "pull_request": {
            "number": number,
            "title": title,
            "body": body,
            "user": {"login": author},
            "mergeable": mergeable,
            "mergeable_state": mergeable_state,
            "html_url": f"https://github.com/{owner}/{repo}/pull/{number}",
        },
        "repository": {
            "name": repo,
            "full_name": f"{owner}/{repo}",
            "owner": {"login": owner},
        },
    }
    if installation_id is not None:
        payload["installation"] = {"id": installation_id}
    return payload


@pytest.fixture
def pr_payload():
    return make_pr_payload


@pytest.fixture
def fallback():
    return FallbackMessage(FALLBACK_TEXT)
