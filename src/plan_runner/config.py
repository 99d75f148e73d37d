# config.py
# Environment-driven settings. Values come from the process environment,
# with a local .env file loaded first for development.

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

# Team-meeting space queried by fetchMeetings unless CPLACE_MEETING_SPACE is set.
DEFAULT_MEETING_SPACE = "space/ssj824tv7owh6ktuxa685u3ac"


class Settings(BaseModel):
    openai_api_base_url: str | None = None
    openai_api_key: str | None = None
    openai_deployment_name: str | None = None
    openai_api_version: str | None = None

    cplace_api_base_url: str | None = None
    cplace_api_token: str | None = None
    cplace_user_name: str | None = None
    cplace_pass: str | None = None
    cplace_meeting_space: str = DEFAULT_MEETING_SPACE

    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_base_url=os.getenv("OPENAI_API_BASE_URL"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_deployment_name=os.getenv("OPENAI_DEPLOYMENT_NAME"),
            openai_api_version=os.getenv("OPENAI_API_VERSION"),
            cplace_api_base_url=os.getenv("CPLACE_API_BASE_URL"),
            cplace_api_token=os.getenv("CPLACE_API_TOKEN"),
            cplace_user_name=os.getenv("CPLACE_USER_NAME"),
            cplace_pass=os.getenv("CPLACE_PASS"),
            cplace_meeting_space=os.getenv("CPLACE_MEETING_SPACE", DEFAULT_MEETING_SPACE),
            host=os.getenv("PLAN_RUNNER_HOST", "127.0.0.1"),
            port=int(os.getenv("PLAN_RUNNER_PORT", "8000")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
