"""Common English first-name nicknames.

Example:
    >>> from memberlink.matching.nicknames import is_nickname
    >>> is_nickname("Bill", "William")
    True
"""

from typing import Dict, FrozenSet

from .similarity import normalize_name

NICKNAMES: Dict[str, FrozenSet[str]] = {
    "william": frozenset({"bill", "billy", "will", "willie"}),
    "robert": frozenset({"bob", "bobby", "rob", "robbie"}),
    "richard": frozenset({"rick", "ricky", "dick", "rich"}),
    "james": frozenset({"jim", "jimmy", "jamie"}),
    "john": frozenset({"jack", "johnny", "jon"}),
    "michael": frozenset({"mike", "mickey", "mick"}),
    "david": frozenset({"dave", "davy"}),
    "daniel": frozenset({"dan", "danny"}),
    "christopher": frozenset({"chris", "christie"}),
    "matthew": frozenset({"matt", "matty"}),
    "anthony": frozenset({"tony"}),
    "elizabeth": frozenset({"liz", "beth", "betty", "eliza"}),
    "patricia": frozenset({"pat", "patty", "tricia"}),
    "jennifer": frozenset({"jen", "jenny", "jenn"}),
    "maria": frozenset({"mary"}),
    "susan": frozenset({"sue", "susie", "suzy"}),
    "margaret": frozenset({"maggie", "meg", "peggy"}),
    "dorothy": frozenset({"dot", "dotty"}),
    "catherine": frozenset({"cathy", "kate", "katie"}),
}


def is_nickname(a: str, b: str) -> bool:
    """True if one name is a listed nickname of the other (either order)."""
    norm_a = normalize_name(a)
    norm_b = normalize_name(b)
    if not norm_a or not norm_b:
        return False
    return norm_b in NICKNAMES.get(norm_a, frozenset()) or norm_a in NICKNAMES.get(norm_b, frozenset())
