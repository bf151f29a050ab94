import asyncio
import logging

import pytest

from mergemind.errors import GenerationError, GitHubAPIError, GitHubTransportError, MalformedEventError
from mergemind.auth import GitHubAppAuth
from mergemind.generation import CommentGenerator
from mergemind.github_client import GitHubClient
from mergemind.handler import PullRequestOpenedHandler, conflict_warning, generated_comment
from mergemind.models import PullRequestContext

GENERATED = (
    "Hi! I'm **MergeMind assistant** and I've picked up this pull request.\n\n"
    "Estimated time to resolve: ~15 minutes\n\n"
    "I'll follow along in this thread. Leave a comment if you have questions "
    "or simple instructions for me."
)


class RecordingPoster:
    def __init__(self, timeline=None, fail_kind=None, error=None):
        self.timeline = timeline if timeline is not None else []
        self.fail_kind = fail_kind
        self.error = error
        self.actions = []
        self.installation_ids = []

    async def post(self, action, installation_id=None):
        self.timeline.append(("post", action.kind))
        if action.kind == self.fail_kind:
            raise self.error
        self.actions.append(action)
        self.installation_ids.append(installation_id)
        return {"id": len(self.actions)}


class StubClient:
    def __init__(self, timeline=None, text=GENERATED, error=None):
        self.timeline = timeline if timeline is not None else []
        self.text = text
        self.error = error

    async def generate(self, system_prompt, user_prompt):
        self.timeline.append(("generate",))
        if self.error:
            raise self.error
        return self.text


def make_handler(fallback, poster=None, client=None):
    poster = poster or RecordingPoster()
    client = client or StubClient()
    return PullRequestOpenedHandler(CommentGenerator(client, fallback), poster), poster


class TestPlanning:

    def test_conflict_warning_addresses_author(self, pr_payload):
        context = PullRequestContext.from_payload(pr_payload(author="bob", mergeable=False, mergeable_state="dirty"))

        action = conflict_warning(context)

        assert action.kind == "conflict_warning"
        assert action.body.startswith("Hey @bob,")
        assert "**merge conflicts**" in action.body
        assert (action.owner, action.repo, action.issue_number) == ("octo-org", "widgets", 7)

    def test_no_conflict_warning_for_clean_pr(self, pr_payload):
        context = PullRequestContext.from_payload(pr_payload(mergeable=True, mergeable_state="clean"))

        assert conflict_warning(context) is None

    def test_dirty_state_alone_triggers_warning(self, pr_payload):
        context = PullRequestContext.from_payload(pr_payload(mergeable=None, mergeable_state="dirty"))

        assert conflict_warning(context) is not None

    def test_generated_comment(self, pr_payload):
        context = PullRequestContext.from_payload(pr_payload())

        action = generated_comment(context, "hello")

        assert action.kind == "generated"
        assert action.body == "hello"
        assert action.issue_number == 7


class TestPullRequestOpenedHandler:

    @pytest.mark.asyncio
    async def test_clean_pr_posts_only_generated_comment(self, pr_payload, fallback):
        handler, poster = make_handler(fallback)

        posted = await handler.handle(
            pr_payload(title="Fix bug", body="", author="alice", mergeable=True, mergeable_state="clean")
        )

        assert [a.kind for a in posted] == ["generated"]
        assert len(poster.actions) == 1
        body = poster.actions[0].body
        assert "MergeMind assistant" in body
        assert any("minutes" in line for line in body.splitlines())
        assert "```" not in body
        assert poster.installation_ids == [4242]

    @pytest.mark.asyncio
    async def test_conflict_warning_posted_before_generation(self, pr_payload, fallback):
        timeline = []
        handler, poster = make_handler(
            fallback,
            poster=RecordingPoster(timeline=timeline),
            client=StubClient(timeline=timeline),
        )

        posted = await handler.handle(pr_payload(mergeable=False, mergeable_state="dirty"))

        assert timeline == [("post", "conflict_warning"), ("generate",), ("post", "generated")]
        assert [a.kind for a in posted] == ["conflict_warning", "generated"]
        assert poster.actions[0].body.startswith("Hey @alice,")

    @pytest.mark.asyncio
    async def test_generation_failure_posts_fallback_verbatim(self, pr_payload, fallback, caplog):
        caplog.set_level(logging.INFO)
        handler, poster = make_handler(fallback, client=StubClient(error=GenerationError("timeout")))

        await handler.handle(pr_payload())

        assert len(poster.actions) == 1
        assert poster.actions[0].body == fallback.text
        assert "Falling back to static message" in caplog.text

    @pytest.mark.asyncio
    async def test_api_error_on_post_is_logged_with_status(self, pr_payload, fallback, caplog):
        poster = RecordingPoster(fail_kind="generated", error=GitHubAPIError(403, "Resource not accessible by integration"))
        handler, _ = make_handler(fallback, poster=poster)

        posted = await handler.handle(pr_payload())

        assert posted == []
        assert "Error! Status: 403. Message: Resource not accessible by integration" in caplog.text

    @pytest.mark.asyncio
    async def test_transport_error_on_post_is_logged_raw(self, pr_payload, fallback, caplog):
        poster = RecordingPoster(fail_kind="generated", error=GitHubTransportError("connection reset"))
        handler, _ = make_handler(fallback, poster=poster)

        posted = await handler.handle(pr_payload())

        assert posted == []
        assert "connection reset" in caplog.text
        assert "Status:" not in caplog.text

    @pytest.mark.asyncio
    async def test_conflict_post_failure_propagates(self, pr_payload, fallback):
        timeline = []
        poster = RecordingPoster(timeline=timeline, fail_kind="conflict_warning", error=GitHubAPIError(500, "boom"))
        handler, _ = make_handler(fallback, poster=poster, client=StubClient(timeline=timeline))

        with pytest.raises(GitHubAPIError):
            await handler.handle(pr_payload(mergeable=False, mergeable_state="dirty"))

        assert ("generate",) not in timeline

    @pytest.mark.asyncio
    async def test_malformed_payload_raises(self, fallback):
        handler, poster = make_handler(fallback)

        with pytest.raises(MalformedEventError):
            await handler.handle({"action": "opened", "pull_request": {"title": "x"}})

        assert poster.actions == []

    @pytest.mark.asyncio
    async def test_concurrent_deliveries_do_not_interfere(self, pr_payload, fallback):
        class EchoClient:
            async def generate(self, system_prompt, user_prompt):
                await asyncio.sleep(0)
                title_line = user_prompt.splitlines()[0]
                await asyncio.sleep(0)
                return f"Welcome! {title_line}"

        handler, poster = make_handler(fallback, client=EchoClient())

        first, second = await asyncio.gather(
            handler.handle(pr_payload(number=1, title="Add login", repo="alpha")),
            handler.handle(pr_payload(number=2, title="Remove logout", repo="beta")),
        )

        assert [a.issue_number for a in first] == [1]
        assert [a.issue_number for a in second] == [2]
        by_number = {a.issue_number: a for a in poster.actions}
        assert by_number[1].repo == "alpha"
        assert 'PR title: "Add login"' in by_number[1].body
        assert by_number[2].repo == "beta"
        assert 'PR title: "Remove logout"' in by_number[2].body

    @pytest.mark.asyncio
    async def test_missing_installation_id_is_logged_not_raised(self, pr_payload, fallback, caplog):
        poster = GitHubClient(GitHubAppAuth("12345", "unused-key"))
        handler, _ = make_handler(fallback, poster=poster)

        posted = await handler.handle(pr_payload(installation_id=None))

        assert posted == []
        assert "Could not obtain an installation token" in caplog.text
