"""AllyCheck -- accessibility audits with scoring, validation and AI explanations."""

__version__ = "0.1.0"
