"""Local development server simulating an AI pair-programmer."""
from .generator import CANNED_RESPONSES, Generation, ResponseGenerator, generate, generate_files
from .lifecycle import ServerHandle, start_server
from .router import ChatRouter, Reply

__all__ = [
    "CANNED_RESPONSES",
    "ChatRouter",
    "Generation",
    "Reply",
    "ResponseGenerator",
    "ServerHandle",
    "generate",
    "generate_files",
    "start_server",
]
