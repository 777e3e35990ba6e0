"""Static domain lookup tables.

These are read-only after import. Unknown keys are never an error: callers
look names up with ``.get(name, ())``.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

# Capability bundles: integrations that need a fixed set of domains.
CAPABILITY_BUNDLES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "slack": ("slack.com", "hooks.slack.com", "api.slack.com"),
        "telegram": ("api.telegram.org",),
    }
)

# Known domains required by builtin and common integration tools.
TOOL_DOMAINS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "web_search": ("api.tavily.com", "api.perplexity.ai"),
        "web-search": ("api.tavily.com", "api.perplexity.ai"),
        "http_request": (),  # target hosts come from user config
        "slack_notify": ("slack.com", "hooks.slack.com"),
        "github_api": ("api.github.com", "github.com"),
        "openai_completion": ("api.openai.com",),
        "anthropic_api": ("api.anthropic.com",),
        "huggingface_api": ("api-inference.huggingface.co", "huggingface.co"),
        "google_vertex": ("us-central1-aiplatform.googleapis.com",),
        "sendgrid_email": ("api.sendgrid.com",),
        "twilio_sms": ("api.twilio.com",),
        "aws_bedrock": ("bedrock-runtime.us-east-1.amazonaws.com",),
        "azure_openai": ("openai.azure.com",),
    }
)

# Model provider API endpoints. ollama runs locally and needs no egress.
PROVIDER_DOMAINS: Mapping[str, str] = MappingProxyType(
    {
        "openai": "api.openai.com",
        "anthropic": "api.anthropic.com",
        "gemini": "generativelanguage.googleapis.com",
    }
)
