"""Token counting for context packs."""
import threading
from typing import Optional, Protocol

from ..errors import ExternalFetchFailure


DEFAULT_TOKENIZER_MODEL = "gpt-4"


class TokenCounter(Protocol):
    def count(self, text: str) -> int: ...


class Tokenizer:
    """tiktoken-backed counter for a target model.

    The encoding is loaded on first use; tiktoken may download the BPE file
    at that point, so a failure surfaces as ExternalFetchFailure.
    """

    def __init__(self, model: str = DEFAULT_TOKENIZER_MODEL):
        self.model = model
        self._encoding = None
        self._lock = threading.Lock()

    def _load(self):
        if self._encoding is None:
            with self._lock:
                if self._encoding is None:
                    try:
                        import tiktoken
                        self._encoding = tiktoken.encoding_for_model(self.model)
                    except Exception as e:
                        raise ExternalFetchFailure(
                            f"Could not load tokenizer for {self.model}: {e}"
                        ) from e
        return self._encoding

    def count(self, text: str) -> int:
        if not text:
            return 0
        return len(self._load().encode(text, disallowed_special=()))


_default: Optional[Tokenizer] = None


def default_tokenizer(model: str = DEFAULT_TOKENIZER_MODEL) -> Tokenizer:
    """Shared tokenizer for ``model``, reused across assemblies."""
    global _default
    if _default is None or _default.model != model:
        _default = Tokenizer(model)
    return _default
