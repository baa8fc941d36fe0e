class BitbucketReportError(Exception):
    pass


class ConfigurationMissing(BitbucketReportError):
    pass


class ApiError(BitbucketReportError):
    """A single GET against the Bitbucket API failed"""

    def __init__(self, endpoint, message):
        super().__init__(message)
        self.endpoint = endpoint


class TransportError(ApiError):
    pass


class RequestTimeout(TransportError):
    def __init__(self, endpoint):
        super().__init__(endpoint, "Request timeout")


class ServerError(ApiError):
    def __init__(self, endpoint, status_code, body):
        super().__init__(endpoint, f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ResponseParseError(ApiError):
    def __init__(self, endpoint, detail):
        super().__init__(endpoint, f"Parse error: {detail}")


class RepositoryListingError(BitbucketReportError):
    pass
