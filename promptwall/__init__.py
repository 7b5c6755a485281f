"""PromptWall: a prompt firewall for LLM applications.

Screens prompts with configurable regex rules and a steganographic morse-code
detector, and returns an allow / log / warn / block verdict::

    from promptwall import PromptFirewall

    verdict = PromptFirewall().filter("What is the weather like today?")
"""

from promptwall.config import FirewallConfig, load_config
from promptwall.constants import SERVICE_VERSION as __version__
from promptwall.firewall import PromptFirewall
from promptwall.models.verdict import FilterResult, MatchedPattern

__all__ = [
    "FilterResult",
    "FirewallConfig",
    "MatchedPattern",
    "PromptFirewall",
    "__version__",
    "load_config",
]
