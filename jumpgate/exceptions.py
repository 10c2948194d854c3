class JumpGateError(Exception):
    """Base class for every failure that ends an invocation."""


class ConfigurationError(JumpGateError):
    pass


class InvalidTargetError(JumpGateError):
    pass


class ExternalCallError(JumpGateError):
    pass


class MissingDependencyError(JumpGateError):
    pass


class AmbiguousMatchError(JumpGateError):
    """A lookup that must yield exactly one element yielded zero or several."""

    def __init__(self, stage, wanted, candidates, matches=None):
        self.stage = stage
        self.wanted = wanted
        self.candidates = list(candidates)
        self.matches = list(matches) if matches is not None else []
        if self.matches:
            found = f"{len(self.matches)} matches: {', '.join(self.matches)}"
        else:
            found = "no match"
        listing = ", ".join(self.candidates) if self.candidates else "(none)"
        super().__init__(
            f"{stage}: '{wanted}' gave {found}. Candidates: {listing}"
        )
