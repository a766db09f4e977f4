"""Pytest configuration and fixtures."""

import pytest

from claimify.config.settings import Settings
from claimify.models import Document
from tests.factories import ScriptedGenerator, happy_path_responder


@pytest.fixture
def acme_document() -> Document:
    """Three-sentence response: verifiable, opinion, attributed statement."""
    return Document(
        filename="acme.json",
        query="What does the report say about ACME's revenue?",
        response=(
            "ACME reported revenue of $2.5 billion in 2024. "
            "This is an impressive result. "
            "The CEO said growth came from cloud sales."
        ),
        tokenized_response=[
            "ACME reported revenue of $2.5 billion in 2024.",
            "This is an impressive result.",
            "The CEO said growth came from cloud sales.",
        ],
    )


@pytest.fixture
def solar_document() -> Document:
    """Two-sentence response: verifiable fact, generic filler."""
    return Document(
        filename="solar.json",
        query="What does the dataset say about solar power?",
        response="Solar capacity in Germany doubled between 2015 and 2020. It remains an important topic.",
        tokenized_response=[
            "Solar capacity in Germany doubled between 2015 and 2020.",
            "It remains an important topic.",
        ],
    )


@pytest.fixture
def documents(acme_document: Document, solar_document: Document) -> list[Document]:
    return [acme_document, solar_document]


@pytest.fixture
def raw_documents(documents: list[Document]) -> list[dict]:
    return [doc.to_input_dict() for doc in documents]


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def scripted_generator() -> type[ScriptedGenerator]:
    return ScriptedGenerator


@pytest.fixture
def happy_generator() -> ScriptedGenerator:
    return ScriptedGenerator(happy_path_responder)
