# smartcat/llm_interaction/__init__.py

"""
1) Wire -------- What we send to each provider
2) Responses --- What we get back
3) Adapter ----- How we talk to the provider


wire.py
"What we send"
Turns a customized Prompt into the provider's request body.
OpenAI-compatible providers (openai, azureopenai, mistral, groq, cerebras, ollama)
get the messages unchanged.
Anthropic gets system messages relabeled to user and consecutive
same-role messages merged with a blank line, plus a fixed max_tokens.
It also builds the auth headers for each provider.


responses.py
"What we get back"
Parses the three response envelopes into one assistant Message:
-OpenAI family: choices[0].message.content
-Anthropic: content[0].text
-Ollama: message.content
Bad JSON or an empty choices/content list is a MalformedResponseError.


adapter.py
"How we talk to the provider"
It is the transport layer.
Nothing else in the system knows about HTTP, everything else just calls:
adapter.request_message(prompt)
Non-2xx answers become ApiResponseError, connection problems TransportError.
"""

from .adapter import LLMAdapter
from .responses import from_wire_response
from .wire import auth_headers, merge_anthropic_messages, to_wire_request

__all__ = [
    "LLMAdapter",
    "from_wire_response",
    "auth_headers",
    "merge_anthropic_messages",
    "to_wire_request",
]
