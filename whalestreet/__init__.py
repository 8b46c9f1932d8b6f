"""WhaleStreetAI game studio: natural-language game ideas to live HTML/CSS/JS."""

__version__ = "1.0.0"
