"""Unit test fixtures - small in-memory patent collections"""

import pytest

from src.models import Document


def pad(text: str, length: int, fill: str = ".") -> str:
    """Pad text to an exact length without creating new tokens"""
    return text.ljust(length, fill)


@pytest.fixture
def sample_documents():
    """Mixed Korean/English patent collection"""
    return [
        Document(
            identifier="10-2021-0001001",
            title="전기자동차용 배터리 냉각 장치",
            abstract="전기자동차 배터리 모듈의 온도를 제어하는 냉각 플레이트를 제공한다.",
            full_text=pad(
                "본 발명은 전기자동차 배터리 팩에 관한 것으로, 배터리 셀 사이에 냉각 플레이트를 배치한다. "
                "battery cooling plate for electric vehicle.",
                400,
            ),
        ),
        Document(
            identifier="10-2021-0001002",
            title="Lithium battery anode material",
            abstract="An anode material for lithium ion battery with silicon coating.",
            full_text=pad("The lithium anode comprises silicon particles coated with carbon.", 600),
        ),
        Document(
            identifier="10-2021-0001003",
            title="자동차 도어 힌지",
            abstract="차량 도어의 개폐를 위한 힌지 구조.",
            full_text=pad("도어 힌지 구조에 관한 발명이다.", 250),
        ),
        Document(
            identifier="10-2021-0001004",
            title="Solar panel mounting bracket",
            abstract="A bracket for mounting solar panels on a roof.",
            full_text="",
        ),
    ]


@pytest.fixture
def make_document():
    """Factory for documents with defaults"""
    def _make(identifier="doc", title="", abstract="", full_text=""):
        return Document(identifier=identifier, title=title, abstract=abstract, full_text=full_text)
    return _make
