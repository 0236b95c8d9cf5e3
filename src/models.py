"""Patent document value types shared by the ranking core and the service layer"""

from dataclasses import dataclass
from typing import Any, Dict


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class Document:
    """Single patent record (read-only input to ranking)"""
    identifier: str      # Application number, opaque
    title: str
    abstract: str
    full_text: str = ""  # May be empty
    
    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Document":
        """
        Build a Document from a raw patent record.
        
        Uses the patents.json keys: app_no, title, abstract, text.
        Missing or null fields become empty strings.
        
        Example:
            >>> Document.from_record({"app_no": "10-2020-0001", "title": "Battery"})
            Document(identifier='10-2020-0001', title='Battery', abstract='', full_text='')
        """
        return cls(
            identifier=_text(record.get("app_no")),
            title=_text(record.get("title")),
            abstract=_text(record.get("abstract")),
            full_text=_text(record.get("text")),
        )


@dataclass(frozen=True)
class ScoredDocument:
    """Document with its similarity to a query (0-100, one decimal)"""
    document: Document
    similarity: float
    
    @property
    def identifier(self) -> str:
        return self.document.identifier
    
    @property
    def title(self) -> str:
        return self.document.title
    
    @property
    def abstract(self) -> str:
        return self.document.abstract
