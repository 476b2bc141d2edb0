from relay.core.prompt import SUMMARY_PROMPT, build_summary_prompt
from relay.core.transcript import TranscriptStore, Turn

__all__ = ["SUMMARY_PROMPT", "TranscriptStore", "Turn", "build_summary_prompt"]
