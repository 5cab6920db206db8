# SchoolGate - Role combination validator (advisory)
from .models import Affiliation, Role

# Affiliations each primary role may legitimately carry; None is always allowed.
VALID_COMBINATIONS: dict[Role, frozenset[Affiliation]] = {
    Role.ADMIN: frozenset(),
    Role.TEACHER: frozenset({Affiliation.STAFF, Affiliation.VICE_PRINCIPAL, Affiliation.PRINCIPAL}),
    Role.STUDENT: frozenset({Affiliation.STUDENT_COUNCIL}),
    Role.PARENT: frozenset(),
}


def is_valid_combination(role, affiliation=None) -> bool:
    """
    True when the (role, affiliation) pairing is sanctioned.
    Advisory only: the decision engine never denies on this result.
    """
    try:
        role = Role(role)
    except ValueError:
        return False
    if affiliation is None:
        return True
    try:
        affiliation = Affiliation(affiliation)
    except ValueError:
        return False
    return affiliation in VALID_COMBINATIONS[role]
