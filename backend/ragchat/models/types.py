from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    text: str
    sha256: Optional[str] = None


class EmbeddedDocument(Document):
    embedding: List[float]


class CacheRecord(BaseModel):
    """On-disk shape of one cached document. `snippet` holds the full text."""

    id: str
    title: str
    snippet: str
    embedding: List[float]
    sha256: Optional[str] = None

    @classmethod
    def from_document(cls, doc: EmbeddedDocument) -> "CacheRecord":
        return cls(id=doc.id, title=doc.title, snippet=doc.text, embedding=list(doc.embedding), sha256=doc.sha256)

    def to_document(self) -> EmbeddedDocument:
        return EmbeddedDocument(id=self.id, title=self.title, text=self.snippet, embedding=self.embedding, sha256=self.sha256)


class Citation(BaseModel):
    # provider-specific fields (e.g. Cohere's "type") are passed through untouched
    model_config = ConfigDict(extra="allow")

    start: Optional[int] = None
    end: Optional[int] = None
    text: Optional[str] = None
    document_ids: List[str] = Field(default_factory=list)


class ChatReply(BaseModel):
    text: str = ""
    citations: List[Citation] = Field(default_factory=list)


class HolidayResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str


class CorpusHealth(BaseModel):
    status: str
    documents: int = 0
    dimension: Optional[int] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    provider: str
    cache_file: str
    cache_present: bool
    corpus: CorpusHealth
    last_init_metrics: Optional[Dict[str, Any]] = None
