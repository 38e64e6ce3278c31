"""Reddit brand-mention monitoring: lexicon sentiment, dedupe and manual overrides."""

__version__ = "0.1.0"
