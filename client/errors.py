class RefreshFailed(Exception):
    """The shared token refresh did not produce a new access token.

    Raised to the request that started the refresh and to every request that
    was waiting on it. `response` is the refresh endpoint's response when there
    was one (None on timeouts and transport errors).
    """

    def __init__(self, message, response=None):
        super().__init__(message)
        self.response = response
