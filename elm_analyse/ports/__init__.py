"""Pass-through hooks between the engine and the local environment."""
