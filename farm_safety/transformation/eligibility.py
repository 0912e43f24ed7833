"""
Eligibility Filter

Selects the farm documents that take part in a scoring pass and
zero-initializes score fields on documents that have never been scored.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Tuple

from .documents import SCORE_FIELDS, parse_number, read_asset_symbol
import logging

logger = logging.getLogger(__name__)

DEFAULT_ALWAYS_ELIGIBLE_PROTOCOLS = frozenset({"sushiswap"})


@dataclass(frozen=True)
class EligibilityRules:
    """Exclusion lists applied to every scoring pass"""

    # Protocols whose documents carry no allocPoint but are still live
    always_eligible_protocols: FrozenSet[str] = DEFAULT_ALWAYS_ELIGIBLE_PROTOCOLS
    # (id, chef) pairs of farms that were migrated away from
    deprecated_farms: FrozenSet[Tuple[int, str]] = field(default_factory=frozenset)
    # Asset symbols that are not real yield positions (e.g. vote-escrowed tokens)
    asset_blacklist: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        always_eligible_protocols: Iterable[str] = DEFAULT_ALWAYS_ELIGIBLE_PROTOCOLS,
        deprecated_farms: Iterable[Tuple[int, str]] = (),
        asset_blacklist: Iterable[str] = (),
    ) -> "EligibilityRules":
        """Build rules from plain iterables, normalizing case where it is irrelevant"""
        return cls(
            always_eligible_protocols=frozenset(
                p.lower() for p in always_eligible_protocols
            ),
            deprecated_farms=frozenset(
                (int(farm_id), chef.lower()) for farm_id, chef in deprecated_farms
            ),
            asset_blacklist=frozenset(asset_blacklist),
        )

    def is_deprecated(self, farm_id: Any, chef: Any) -> bool:
        if not isinstance(chef, str):
            return False
        number = parse_number(farm_id)
        if number is None:
            return False
        return (int(number), chef.lower()) in self.deprecated_farms


def needs_score_migration(document: Dict[str, Any]) -> bool:
    return "totalScore" not in document


def migrate_score_fields(
    documents: Iterable[Dict[str, Any]],
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Give never-scored documents zeroed score fields

    The input documents are not modified; migrated documents are copies.

    Args:
        documents: Farm documents from the population snapshot

    Returns:
        Tuple of (all documents, the migrated subset)
    """
    result = []
    migrated = []
    for document in documents:
        if needs_score_migration(document):
            document = {**document, **{name: 0.0 for name in SCORE_FIELDS.values()}}
            migrated.append(document)
        result.append(document)

    if migrated:
        logger.info(f"Zero-initialized score fields on {len(migrated)} documents")
    return result, migrated


def has_active_allocation(document: Dict[str, Any]) -> bool:
    alloc_point = parse_number(document.get("allocPoint"))
    return alloc_point is not None and alloc_point > 0


def is_eligible(document: Dict[str, Any], rules: EligibilityRules) -> bool:
    """
    A document is eligible when it is live (always-eligible protocol, or a
    positive allocPoint), not a deprecated (id, chef) farm, and its asset
    symbol is not blacklisted.
    """
    protocol = document.get("protocol")
    protocol = protocol.lower() if isinstance(protocol, str) else ""

    if protocol not in rules.always_eligible_protocols and not has_active_allocation(
        document
    ):
        return False
    if rules.is_deprecated(document.get("id"), document.get("chef")):
        return False
    if read_asset_symbol(document) in rules.asset_blacklist:
        return False
    return True


def filter_eligible(
    documents: Iterable[Dict[str, Any]], rules: EligibilityRules
) -> List[Dict[str, Any]]:
    """
    Filter farm documents down to the scoring population

    Args:
        documents: Farm documents
        rules: Exclusion rules

    Returns:
        List of eligible documents, in input order
    """
    documents = list(documents)
    eligible = [document for document in documents if is_eligible(document, rules)]
    logger.info(f"Filtered {len(documents)} farms to {len(eligible)} eligible farms")
    return eligible
