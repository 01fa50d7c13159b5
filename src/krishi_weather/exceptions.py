class KrishiError(Exception):
    """Base error, converted to an ``{"error": ...}`` envelope at the boundary"""

    status_code = 500


class ConfigurationError(KrishiError):
    """A required setting such as the provider API key is missing"""


class UpstreamError(KrishiError):
    """The weather provider failed or returned something unusable"""


class MalformedRequestError(KrishiError):
    status_code = 400


class EmptyCartError(MalformedRequestError):
    pass


class OrderNotFoundError(KrishiError):
    status_code = 404


class ListingNotFoundError(KrishiError):
    status_code = 404


class UnknownCropError(KrishiError):
    """No price history is kept for the requested crop"""

    status_code = 404
