class MiniPGError(Exception):
    """Base class for every error raised while building statements"""


class ModelDeclarationError(MiniPGError, ValueError):
    pass


class UnknownPropertyError(MiniPGError, AttributeError):
    """Property is not declared on the model"""


class UnknownRelatedModelError(MiniPGError, LookupError):
    """Relationship target is missing from the repository registry"""


class MissingRequiredFieldError(MiniPGError, ValueError):
    pass


class UndefinedValueError(MiniPGError, ValueError):
    """Value is unset, or a hydrated relation value has no primary key"""


class InvalidConstraintError(MiniPGError, ValueError):
    """Pattern constraint was given something other than a string"""


class UnsupportedOperatorError(MiniPGError, TypeError):
    pass


class InvalidArgumentError(MiniPGError, ValueError):
    pass
