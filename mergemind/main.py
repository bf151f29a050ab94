from fastapi import FastAPI
from contextlib import asynccontextmanager
import asyncio
import logging

import aiohttp
import jwt
import uvicorn

from mergemind.auth import GitHubAppAuth
from mergemind.config import Config
from mergemind.fallback import FallbackMessage
from mergemind.generation import CommentGenerator, GenerationClient
from mergemind.github_client import GitHubClient
from mergemind.handler import PullRequestOpenedHandler
from mergemind.webhooks import router as webhook_router


logging.basicConfig(
    level=Config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_handler() -> tuple[PullRequestOpenedHandler, GitHubAppAuth]:
    """Load credentials and the fallback message once and wire the handler"""
    Config.validate()

    auth = GitHubAppAuth.from_key_file(
        app_id=Config.GITHUB_APP_ID,
        private_key_path=Config.GITHUB_PRIVATE_KEY_PATH,
        api_base_url=Config.github_api_base(),
        installation_id=Config.installation_id(),
    )
    fallback = FallbackMessage.load(Config.FALLBACK_MESSAGE_PATH)

    generation_client = GenerationClient(
        Config.OPENAI_API_KEY,
        base_url=Config.OPENAI_BASE,
        model=Config.MODEL,
        max_tokens=Config.LLM_MAX_TOKENS,
        temperature=Config.LLM_TEMPERATURE,
        timeout_s=Config.LLM_TIMEOUT,
    )
    handler = PullRequestOpenedHandler(
        generator=CommentGenerator(generation_client, fallback),
        poster=GitHubClient(auth),
    )
    return handler, auth


@asynccontextmanager
async def lifespan(app: FastAPI):
    handler, auth = build_handler()
    app.state.pr_opened_handler = handler

    # Sanity check that the app credentials work
    try:
        data = await auth.get_app()
        logger.debug(f"Authenticated as '{data.get('name')}'")
    except (aiohttp.ClientError, asyncio.TimeoutError, jwt.PyJWTError, ValueError) as e:
        logger.error(f"GitHub App authentication check failed: {e}")

    logger.info(f"Server is listening for events at: http://localhost:{Config.PORT}{Config.WEBHOOK_PATH}")

    yield

    logger.info("Shutting down")


app = FastAPI(lifespan=lifespan)

@app.get("/")
def ping():
    return {"message": "hello world"}

@app.get("/health")
def health():
    return {"status": "healthy"}

app.include_router(webhook_router)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=Config.PORT)
