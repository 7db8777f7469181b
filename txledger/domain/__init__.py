"""Domain layer - models, exceptions and interfaces."""
