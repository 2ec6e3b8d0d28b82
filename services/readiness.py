"""Document-completeness check for applications."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from models import Application, Document, DocumentRequirement


@dataclass(frozen=True)
class Readiness:
    ready: bool
    unmet: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"ready": self.ready, "missing_requirement_ids": list(self.unmet)}


def evaluate_readiness(
    requirements: Iterable[DocumentRequirement],
    documents: Iterable[Document],
) -> Readiness:
    """A requirement is met by any linked document that is not rejected."""

    present = {
        document.document_requirement_id
        for document in documents
        if document.status != "rejected"
    }
    unmet = [
        requirement.id
        for requirement in sorted(requirements, key=lambda r: r.order_index)
        if requirement.is_required and requirement.id not in present
    ]
    return Readiness(ready=not unmet, unmet=unmet)


def check_readiness(application: Application) -> Readiness:
    requirements = DocumentRequirement.query.filter_by(
        visa_type_id=application.visa_type_id, is_required=True
    ).all()
    documents = Document.query.filter_by(application_id=application.id).all()
    return evaluate_readiness(requirements, documents)
