from .html import escape_html, strip_tags
from .observability import LLMPromptResponseCallback, TokenUsageCallback, get_default_callbacks
from .reliability import retry_async
