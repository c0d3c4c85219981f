class ProviderConfigurationError(Exception):
    """The active provider is missing a credential, model or endpoint."""


class ExtractionError(Exception):
    """A single image could not be turned into order JSON."""
