"""Exception types and final failure classification."""


class StoryboardError(Exception):
    """Base class for storyboard errors."""


class AnalysisError(StoryboardError):
    """Script analysis failed (network, JSON parse or schema)."""


class ResponseTruncatedError(AnalysisError):
    """The language model stopped at its output token limit."""


class ProviderError(StoryboardError):
    """A single image provider call failed.

    The message carries the provider's raw error text so retry
    classification can inspect it.
    """


class BatchInProgressError(StoryboardError):
    """A generation batch was started while another one is running."""


class GenerationError(StoryboardError):
    """Terminal per-scene failure; its message becomes the scene's error_msg."""


class SafetyRejectedError(GenerationError):
    """The request itself was rejected (safety filter or bad request)."""


class PermissionDeniedError(GenerationError):
    """The credentials have no access to the model."""


class QuotaExhaustedError(GenerationError):
    """Quota still exhausted after every provider's retries."""


def classify_generation_error(error: BaseException) -> GenerationError:
    """Map the last provider error of a failed chain to a user-facing error.

    Rules are checked in order; the first match wins.
    """
    text = str(error).lower()

    if "safety" in text or "400" in text:
        return SafetyRejectedError(
            f"Image generation rejected (safety/request error): {error}"
        )
    if "403" in text or "permission denied" in text:
        return PermissionDeniedError(
            "Permission error (403): the API key has no access to the model."
        )
    if "quota" in text or "exhausted" in text or "429" in text:
        return QuotaExhaustedError(
            "API quota exceeded after all retries. Try again later."
        )
    return GenerationError(f"API call failed: {error}")
