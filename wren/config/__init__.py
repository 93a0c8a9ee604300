"""Configuration for the Wren engine."""
