class RangeOrderError(ValueError):
    """Well-typed input whose time bounds are in the wrong order."""


class UpstreamProviderError(Exception):
    """The OAuth provider answered with an error payload."""

    def __init__(self, payload: dict, status_code: int = 400):
        super().__init__(f"OAuth provider error ({status_code})")
        self.payload = payload
        self.status_code = status_code
