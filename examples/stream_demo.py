"""Minimal demonstration of the streaming core in a terminal."""

import sys

from chat_core.api.service import stream_reply
from chat_core.domain.models import Message, Role

if __name__ == "__main__":
    question = " ".join(sys.argv[1:]) or "用一句话介绍一下 Server-Sent Events"
    messages = [
        Message(role=Role.SYSTEM, content="You are a concise assistant."),
        Message(role=Role.USER, content=question),
    ]
    print("User:", question)
    print("Assistant: ", end="", flush=True)
    stream_reply(messages, on_token=lambda token: print(token, end="", flush=True))
    print()
