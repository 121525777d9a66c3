import asyncio
import itertools
import logging
import sys

from fastapi import FastAPI, Request

logging.basicConfig(stream=sys.stdout, level=logging.INFO, format="%(asctime)sZ %(levelname)s %(message)s")

app = FastAPI(title="Telegram Bot API Mock", version="1.0.0")

_message_ids = itertools.count(1)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/bot{token}/getMe")
async def get_me(token: str) -> dict:
    return {"ok": True, "result": {"id": 1, "is_bot": True, "username": "mock_auth_bot"}}


@app.post("/bot{token}/getUpdates")
async def get_updates(token: str, request: Request) -> dict:
    body = await request.json()
    # nobody ever writes to the mock; behave like an idle long poll
    await asyncio.sleep(min(int(body.get("timeout", 0)), 5))
    return {"ok": True, "result": []}


@app.post("/bot{token}/{method}")
async def any_method(token: str, method: str, request: Request) -> dict:
    body = await request.json()
    logging.info("TG-MOCK %s %r", method, body)
    if method == "sendMessage":
        return {
            "ok": True,
            "result": {"message_id": next(_message_ids), "chat": {"id": body["chat_id"]}, "text": body["text"]},
        }
    return {"ok": True, "result": True}
