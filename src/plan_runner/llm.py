# llm.py
# Chat-completion client for the Azure OpenAI deployment behind the router,
# the planner and the generateActions tool.

from functools import lru_cache

from openai import AsyncAzureOpenAI, OpenAIError

from plan_runner.config import Settings, get_settings
from plan_runner.errors import UpstreamModelError


class ModelClient:
    """
    Thin async wrapper over one chat deployment.

    Every failure, whether raised by the SDK or an empty completion, is
    reported as UpstreamModelError so callers handle a single type.
    """

    def __init__(self, settings: Settings) -> None:
        self._deployment = settings.openai_deployment_name or ""
        try:
            self._client = AsyncAzureOpenAI(
                azure_endpoint=settings.openai_api_base_url or "",
                api_key=settings.openai_api_key,
                api_version=settings.openai_api_version,
            )
        except (OpenAIError, ValueError) as exc:
            raise UpstreamModelError(f"Model client is not configured: {exc}") from exc

    async def complete(
        self,
        messages: list[dict],
        *,
        temperature: float = 0.0,
        max_tokens: int = 400,
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._deployment,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as exc:
            raise UpstreamModelError(str(exc)) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise UpstreamModelError("Model returned an empty completion.")
        return content.strip()


@lru_cache(maxsize=1)
def get_model_client() -> ModelClient:
    return ModelClient(get_settings())
