import json

import pytest

from app.api.routes import chat_routes
from app.services.chat_client import ChatAssistant, ChatUnavailable


class FakeAssistant:
    def __init__(self, chunks=None, fail_after=None):
        self.chunks = chunks or []
        self.fail_after = fail_after
        self.prompts = []

    def reply(self, message):
        self.prompts.append(message)
        if self.fail_after is not None:
            raise ChatUnavailable("boom")
        return "".join(self.chunks)

    def stream(self, message):
        self.prompts.append(message)
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i == self.fail_after:
                raise ChatUnavailable("boom")
            yield chunk


@pytest.fixture
def use_assistant(monkeypatch):
    def _use(assistant):
        monkeypatch.setattr(chat_routes, "get_chat_assistant", lambda: assistant)
        return assistant
    return _use


def _frames(body: str):
    return [line[len("data: "):] for line in body.split("\n\n") if line.startswith("data: ")]


def test_chatbot_reply(client, use_assistant):
    assistant = use_assistant(FakeAssistant(["Practise ", "mock interviews."]))

    r = client.post("/chatbot", json={"message": "How do I prepare?"})

    assert r.status_code == 200
    assert r.json() == {"response": "Practise mock interviews."}
    assert assistant.prompts == ["How do I prepare?"]


def test_chatbot_failure_is_generic(client, use_assistant):
    use_assistant(FakeAssistant(fail_after=0))

    r = client.post("/chatbot", json={"message": "hello"})

    assert r.status_code == 500
    assert r.json() == {"response": "Error generating response from AI."}


def test_chatbot_rejects_blank_message(client, use_assistant):
    use_assistant(FakeAssistant(["unused"]))
    assert client.post("/chatbot", json={"message": "   "}).status_code == 422


def test_stream_sends_chunks_then_done(client, use_assistant):
    use_assistant(FakeAssistant(["Line one\n", "line two"]))

    r = client.post("/api/chat/stream", json={"message": "hi"})

    assert r.headers["content-type"].startswith("text/event-stream")
    frames = _frames(r.text)
    assert [json.loads(f) for f in frames[:-1]] == ["Line one\n", "line two"]
    assert frames[-1] == "[DONE]"


def test_stream_failure_keeps_sent_chunks(client, use_assistant):
    use_assistant(FakeAssistant(["partial", "never sent"], fail_after=1))

    frames = _frames(client.post("/api/chat/stream", json={"message": "hi"}).text)

    assert json.loads(frames[0]) == "partial"
    assert frames[1].startswith("[ERROR]")
    assert frames[2] == "[DONE]"


def test_unconfigured_assistant_refuses():
    assistant = ChatAssistant()

    assert assistant.configured is False
    with pytest.raises(ChatUnavailable):
        assistant.reply("hi")
    with pytest.raises(ChatUnavailable):
        list(assistant.stream("hi"))
