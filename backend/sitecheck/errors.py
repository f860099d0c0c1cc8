"""
Exceptions raised by the site checker.
"""


class ConfigurationError(Exception):
    """Raised when the rule catalogue or site configuration is malformed."""

    def __init__(self, message: str, rule_id: str = ""):
        self.rule_id = rule_id
        super().__init__(f"{rule_id}: {message}" if rule_id else message)


class ArtifactLoadError(Exception):
    """Raised when a document, stylesheet or image cannot be loaded."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(message)
