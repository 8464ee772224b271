"""Model prompting, gateway and reply interpretation."""

from aisignal.brain.gateway import ChatCompletionGateway, GatewayResult, ModelGateway
from aisignal.brain.interpreter import interpret_response, parse_model_reply
from aisignal.brain.prompt import build_prompt, sanitize_for_prompt

__all__ = [
    "ChatCompletionGateway",
    "GatewayResult",
    "ModelGateway",
    "build_prompt",
    "interpret_response",
    "parse_model_reply",
    "sanitize_for_prompt",
]
