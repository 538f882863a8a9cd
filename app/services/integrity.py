"""
Delete gating for entities that own other records.

Callers count dependents through the repository layer and ask
``can_delete`` for a decision; the function never touches storage.
"""
from dataclasses import dataclass, field
from typing import List, Mapping, Tuple

# Dependent names counted before deleting each entity type
ORGANIZATION_DEPENDENTS: Tuple[str, ...] = ("departments", "users", "admins")
DEPARTMENT_DEPENDENTS: Tuple[str, ...] = ("members", "subDepartments")

NOT_FOUND_REASON = "not_found"


@dataclass(frozen=True)
class DeleteDecision:
    allowed: bool
    found: bool = True
    blocking_reasons: List[str] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "found": self.found,
            "blocking_reasons": list(self.blocking_reasons),
            "message": self.message,
        }


def _humanize(name: str) -> str:
    return name.replace("_", "-")


def can_delete(entity: str, counts: Mapping[str, int], entity_found: bool = True) -> DeleteDecision:
    """
    Decide whether ``entity`` may be deleted given its dependent counts.

    Deletion is allowed only when every count is exactly zero. On refusal every
    nonzero dependent is reported, in the order the counts were given. A missing
    entity is reported as ``not_found`` whatever the counts say.
    """
    if not entity_found:
        return DeleteDecision(
            allowed=False,
            found=False,
            blocking_reasons=[NOT_FOUND_REASON],
            message=f"{entity} not found",
        )

    blocking = [name for name, count in counts.items() if count != 0]
    if not blocking:
        return DeleteDecision(allowed=True, message=f"{entity} can be deleted")

    listed = ", ".join(f"{counts[name]} {_humanize(name)}" for name in blocking)
    return DeleteDecision(
        allowed=False,
        blocking_reasons=blocking,
        message=f"Cannot delete {entity.lower()} with associated records: {listed}",
    )
