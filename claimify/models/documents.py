"""Models for source documents and flattened claims."""

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A generated response split into ordered sentences.

    Loaded from ``{filename, query, response, tokenized_response}`` records.
    Immutable once loaded; every stage artifact is aligned to ``sentences``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    filename: str = Field(..., description="Source identifier of the response")
    query: str = Field(..., description="Question the response answers")
    response: str = Field(default="", description="Full response text")
    sentences: tuple[str, ...] = Field(
        ...,
        alias="tokenized_response",
        description="Response split into sentences, in order",
    )

    @property
    def sentence_count(self) -> int:
        return len(self.sentences)

    def to_input_dict(self) -> dict:
        """Render back to the on-disk input shape."""
        return {
            "filename": self.filename,
            "query": self.query,
            "response": self.response,
            "tokenized_response": list(self.sentences),
        }


class ExtractedClaim(BaseModel):
    """A single decomposed claim traced back to its source sentence."""

    claim_id: str = Field(..., description="Stable id: <filename>:<sentence>:<claim>")
    filename: str
    sentence_index: int = Field(..., ge=0)
    claim_index: int = Field(..., ge=0)
    sentence: str = Field(..., description="Decontextualized sentence the claim was decomposed from")
    original_sentence: str = Field(..., description="Source sentence from the document")
    proposition: str = Field(..., description="Bare proposition")
    proposition_with_context: str = Field(
        ..., description="Fact-checker-ready phrasing with bracketed context"
    )
