# server.py
# HTTP surface: one chat-completions style endpoint.
#
#   POST /api/chat  {"messages": [{"role": "user", "content": "..."}]}
#     → {"choices": [{"message": {"role": "assistant", "content": "..."}}]}
#
# Anticipated failures (unparseable plans, unknown tools, model outages)
# come back as 200 with an explanatory assistant message. Anything
# unexpected is a 500.

from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException

from plan_runner import display
from plan_runner.harness import ChatHarness
from plan_runner.models import ChatRequest, ChatResponse

app = FastAPI(title="plan-runner")


@lru_cache(maxsize=1)
def get_harness() -> ChatHarness:
    return ChatHarness()


@app.post("/api/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, harness: ChatHarness = Depends(get_harness)) -> ChatResponse:
    try:
        content = await harness.respond(request.messages)
    except Exception as e:
        display.halt(f"Chat handler error: {e}")
        raise HTTPException(status_code=500, detail="Server error") from e
    return ChatResponse.from_text(content)


def run_server(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Serve the app with uvicorn until interrupted."""
    import uvicorn

    display.banner(host, port)
    uvicorn.run(app, host=host, port=port, log_level="warning")
