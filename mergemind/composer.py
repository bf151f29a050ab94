import re

from .models import PullRequestContext

MAX_BODY_CHARS = 2000
EMPTY_BODY_PLACEHOLDER = "<no body provided>"

_MARKER = re.compile(r"\{\{(\w+)\}\}")

SYSTEM_PROMPT = (
    'You are MergeMind, a GitHub assistant. When creating a comment for a newly opened pull request, '
    'introduce yourself clearly and concisely as "MergeMind assistant".\n'
    "Explain briefly what you can do and that the maintainers or PR author can respond by leaving comments. "
    "Keep it friendly and short (approx 4-8 sentences). Avoid adding code diffs or making commits - "
    "stick to an intro & guide for next steps."
)

USER_PROMPT_TEMPLATE = """PR title: "{{pr_title}}"
PR author: {{pr_author}}
PR body: {{pr_body}}
Repository: {{repo_name}}
Merge Status: {{merge_status}}

Write a short GitHub comment (markdown allowed) that:
 - Introduces itself as MergeMind assistant
 - Briefly says it can help review / answer questions and accept simple instructions in comments
 - Mentions it received this PR and will follow up in the thread
 - Keeps the tone friendly and professional.
 - Attempts to estimate the time in minutes it would take to resolve this pull request,
   on its own line immediately after the introduction.
Return only the comment text (no extra explanation)."""


def truncate_body(body: str | None) -> str:
    if not body:
        return EMPTY_BODY_PLACEHOLDER
    return body[:MAX_BODY_CHARS]


def render_user_prompt(context: PullRequestContext) -> str:
    values = {
        "pr_title": context.title,
        "pr_author": context.author,
        "repo_name": context.repo_full_name,
        "merge_status": context.merge_status_label,
        "pr_body": truncate_body(context.body),
    }
    # Single pass so markers inside PR text are never substituted
    return _MARKER.sub(lambda m: values[m.group(1)], USER_PROMPT_TEMPLATE)


def compose(context: PullRequestContext) -> tuple[str, str]:
    """Return the (system instruction, user prompt) pair for a pull request"""
    return SYSTEM_PROMPT, render_user_prompt(context)
