class BridgeError(Exception):
    """Base class for errors raised while handling a webhook delivery."""


class AuthenticationError(BridgeError):
    """The delivery signature is missing or does not match."""


class MalformedInputError(BridgeError):
    """The authenticated body is not a JSON object."""


class ConfigurationError(BridgeError):
    """Deployment configuration cannot produce a valid import row."""


class DownstreamError(BridgeError):
    """Shopify or Fishbowl failed or answered with something unusable."""
