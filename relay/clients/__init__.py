from relay.clients.gemini import (
    NO_REPLY_PLACEHOLDER,
    GeminiClient,
    InlineImagePart,
    PromptPart,
    TextPart,
)

__all__ = ["NO_REPLY_PLACEHOLDER", "GeminiClient", "InlineImagePart", "PromptPart", "TextPart"]
