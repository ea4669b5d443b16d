# embedding provider errors, translated from each SDK's own exceptions so callers see one taxonomy

class EmbeddingError(Exception):
    """Base class for every failure raised by a text embedding client."""
    pass

class EmptyEmbeddingInputError(EmbeddingError):
    """Blank text was passed in for embedding."""
    pass

class EmbeddingQuotaExceededError(EmbeddingError):
    pass

class EmbeddingInvalidCredentialsError(EmbeddingError):
    pass

class EmbeddingRateLimitedError(EmbeddingError):
    pass

class EmbeddingDimensionMismatchError(EmbeddingError):
    """The provider returned vectors of an unexpected size."""
    pass

def validate_embedding_input(text: list[str]) -> list[str]:
    """Strips each input text, raising EmptyEmbeddingInputError on empty input or any blank entry."""
    if not text:
        raise EmptyEmbeddingInputError("No text provided for embedding")
    cleaned = []
    for index, item in enumerate(text):
        if item is None or not item.strip():
            raise EmptyEmbeddingInputError(f"Text at index {index} cannot be empty")
        cleaned.append(item.strip())
    return cleaned

def validate_embedding_dimensions(vectors: list[list[float]], expected_dimensions: int) -> list[list[float]]:
    for vector in vectors:
        if len(vector) != expected_dimensions:
            raise EmbeddingDimensionMismatchError(
                f"Expected {expected_dimensions} dimensions, got {len(vector)}"
            )
    return vectors
