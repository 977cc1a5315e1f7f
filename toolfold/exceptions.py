from typing import List, Any, Dict


class ToolFoldError(Exception):
    """Base error for the tool-aware memory layer"""


class ToolFoldConfigurationError(ToolFoldError, ValueError):
    """Raised when a fold configuration is rejected at construction time"""

    def __init__(self, message: str, errors: List[Dict[str, Any]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_validation_error(cls, exc) -> "ToolFoldConfigurationError":
        """Build a descriptive error from a pydantic ValidationError"""

        errors = exc.errors()
        details = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ())) or 'config'}: {error.get('msg')}"
            for error in errors
        )
        return cls(f"Invalid tool fold configuration: {details}", errors=errors)
