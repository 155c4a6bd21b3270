"""Identity reconciliation between stored names, accounts and display labels.

Expense rows store participants as free text (whatever the form had at entry
time), so every name is resolved to the canonical name of a known participant
before it takes part in a split. Resolution never raises: a name that cannot
be matched resolves to None and the caller decides what to do with it.
"""

import json
import logging
import unicodedata
from typing import Dict, Iterable, List, Optional, Union

from shared_ledger.config import SELF_PLACEHOLDER
from shared_ledger.models import Expense, Participant

logger = logging.getLogger(__name__)


def normalize_name(name: Optional[str]) -> str:
    """Lowercase, strip accents and surrounding whitespace."""
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFD", name.lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c)).strip()


def parse_name_list(raw: Union[str, List[str], None]) -> List[str]:
    """Decode a stored participant list.

    Lists pass through; JSON text is decoded; anything that does not decode
    to a list is kept as a single-element list holding the raw value.
    """
    if not raw:
        return []
    if isinstance(raw, list):
        return [str(n) for n in raw if n]
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return [raw]
    if isinstance(decoded, list):
        return [str(n) for n in decoded if n]
    if isinstance(decoded, str) and decoded:
        return [decoded]
    return [raw]


class IdentityResolver:
    """Lookup tables for one family context, built from its participant list."""

    def __init__(self, participants: Iterable[Participant], self_placeholder: str = SELF_PLACEHOLDER):
        self.self_placeholder = self_placeholder
        self.display_names: Dict[str, str] = {}
        self._by_member_id: Dict[str, str] = {}
        self._by_normalized: Dict[str, str] = {}
        for p in participants:
            canonical = p.canonical
            self.display_names[canonical] = p.name
            self._by_normalized[normalize_name(canonical)] = canonical
            if p.member_id:
                self._by_member_id[p.member_id] = canonical

    @property
    def identities(self) -> List[str]:
        return list(self.display_names)

    def resolve(self, name: Optional[str]) -> Optional[str]:
        """Exact canonical match first, then accent/case-insensitive match."""
        if not name:
            return None
        if name in self.display_names:
            return name
        return self._by_normalized.get(normalize_name(name))

    def resolve_member(self, member_id: Optional[str]) -> Optional[str]:
        if not member_id:
            return None
        return self._by_member_id.get(member_id)

    def resolve_owner(self, expense: Expense) -> Optional[str]:
        """Who paid: the account that created the row wins over the stored owner text."""
        return self.resolve_member(expense.user_id) or self.resolve(expense.owner)

    def expand_self(self, names: List[str], owner: Optional[str]) -> List[str]:
        """Replace the creator placeholder with the record's owner."""
        if not owner:
            return list(names)
        return [owner if n == self.self_placeholder else n for n in names]

    def display_name(self, identity: str) -> str:
        return self.display_names.get(identity, identity)

    def shared_names(self, expense: Expense) -> List[str]:
        """Participant names stored on the expense, placeholder already expanded."""
        owner = self.resolve_owner(expense) or expense.owner
        return self.expand_self(parse_name_list(expense.shared_with), owner)
