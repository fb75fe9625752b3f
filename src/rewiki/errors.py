"""Error types raised by the article pipeline."""


class GenerationError(RuntimeError):
    """The service produced no usable article (no text, bad JSON, transport failure)."""


class ArticleValidationError(GenerationError):
    """The service returned JSON that does not have the article shape."""


class RevisionApplyError(ValueError):
    """An accepted revision could not be applied to the article."""
