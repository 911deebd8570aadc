"""wafpolicy - compile AWS WAFv2 web ACL policies from feature declarations."""

__version__ = "0.1.0"
