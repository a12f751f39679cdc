"""Configuration and database wiring."""
