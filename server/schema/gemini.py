from typing import NotRequired, TypedDict


class Part(TypedDict):
    text: str


class Content(TypedDict):
    parts: list[Part]
    role: NotRequired[str]


class Candidate(TypedDict):
    content: Content
    finishReason: NotRequired[str]
    index: NotRequired[int]


class GenerateContentResp(TypedDict):
    candidates: list[Candidate]
    modelVersion: NotRequired[str]
