class FormatError(Exception):
    """Base class for failures that abort formatting of one file."""


class EngineError(FormatError):
    """The external pretty-printer rejected the input or failed to run."""


class EncodingError(FormatError):
    """The pretty-printer returned bytes that are not valid UTF-8."""


class StructureChangedError(FormatError):
    """Safe mode found that the formatted tree differs from the input tree."""


class ParseFailureError(FormatError):
    """tree-sitter could not produce a tree at all."""


class ReorderError(FormatError):
    """Declaration reordering failed. The pipeline downgrades this to a warning."""


class ReorderWarning(UserWarning):
    pass
