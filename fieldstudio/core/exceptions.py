"""
Core Exceptions

Typed errors raised at the module configuration boundary. Placement
commands in the layout designer never raise; these are reserved for the
save/update/delete operations the caller surfaces to the user.
"""


class FieldStudioError(Exception):
    """Base class for configuration errors."""

    def __init__(self, message: str = "Configuration error"):
        self.message = message
        super().__init__(self.message)


class FieldNotFoundError(FieldStudioError):
    """Raised when a field id does not exist in the module catalog."""

    def __init__(self, field_id: str):
        self.field_id = field_id
        super().__init__(f"Field not found: {field_id}")


class SystemFieldError(FieldStudioError):
    """
    Raised when a system field would lose its identity.

    System fields cannot be deleted, and their name, type and
    required flag cannot change.
    """

    def __init__(self, field_id: str, message: str):
        self.field_id = field_id
        super().__init__(message)


class InvalidLayoutError(FieldStudioError):
    """Raised when a layout document cannot be saved (e.g. columns outside 2-4)."""


class DuplicateFieldNameError(FieldStudioError):
    """Raised when a field name is already used by another field of the module."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Field name already in use: {name}")


class ModuleConfigNotLoadedError(FieldStudioError):
    """Raised when a catalog operation runs before the module config was loaded."""

    def __init__(self, module_id: str):
        self.module_id = module_id
        super().__init__(f"Module configuration not loaded: {module_id}")
