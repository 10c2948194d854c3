from .exceptions import AmbiguousMatchError


def resource_name(arn):
    """Last path segment of an ARN: cluster/prod -> prod."""
    return arn.split("/")[-1]


def select_one(stage, wanted, candidates, key=resource_name):
    """
    Substring filter with cardinality check: exactly one candidate whose key
    contains `wanted` is returned, anything else raises AmbiguousMatchError
    listing every candidate.
    """
    matches = [c for c in candidates if wanted in key(c)]
    if len(matches) != 1:
        raise AmbiguousMatchError(stage, wanted, candidates, matches)
    return matches[0]


def exactly_one(stage, wanted, items, describe=str):
    """Cardinality check without filtering, for lookups already filtered upstream."""
    items = list(items)
    if len(items) != 1:
        labels = [describe(i) for i in items]
        raise AmbiguousMatchError(stage, wanted, labels, labels)
    return items[0]
